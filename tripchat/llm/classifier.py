# llm/classifier.py
"""
classify(message, history, context)

Single entry point used by the chat agent and the HTTP layer:
1. Classify the message (LLM or patterns)
2. Resolve follow-up answers against the previous turn
3. Merge params with what we already know
4. Work out which required params are still missing
"""

import re
from datetime import date
from typing import Optional, List

from loguru import logger

from ..config import settings
from ..schemas.chat_schemas import (
    IntentType, ExtractedParams, ClassifiedIntent, ConversationState, HistoryMessage
)
from .intent_parser import intent_parser
from .llm_classifier import LLMIntentClassifier
from .slot_filling import (
    get_missing_params, get_follow_up_question, field_for_question,
    merge_params, normalize_params
)


DIRECTION_WORDS = re.compile(r"\b(to|from)\b", re.I)

_llm_classifier: Optional[LLMIntentClassifier] = None


def get_llm_classifier() -> LLMIntentClassifier:
    """Get singleton instance of LLMIntentClassifier"""
    global _llm_classifier
    if _llm_classifier is None:
        _llm_classifier = LLMIntentClassifier()
    return _llm_classifier


def _use_llm(mode: str, llm_classifier: Optional[LLMIntentClassifier]) -> bool:
    if mode == "pattern":
        return False
    if llm_classifier is not None:
        return True
    # "auto" and "llm" both need a key to be useful
    return settings.use_openai


def _same_family(previous: Optional[IntentType], current: IntentType) -> bool:
    if previous is None:
        return False
    return (previous.is_booking and current.is_booking) or (previous.is_info and current.is_info)


def _classify_with_patterns(
    message: str,
    context: ConversationState,
    today: Optional[date]
) -> ClassifiedIntent:
    classified = intent_parser.parse(message, today)

    # A bare answer ("delhi", "15 jan") to a pending question matches nothing specific
    if (
        context.pendingQuestion
        and classified.type == IntentType.GENERAL
        and not classified.params.is_empty()
    ):
        classified.type = IntentType.ANSWER_FOLLOWUP
        classified.confidence = 0.8
        classified.reasoning = "answer to pending question"

    return classified


def _apply_pending_field(message: str, classified: ClassifiedIntent, context: ConversationState):
    """A lone city answering "where from?" is the origin, not the destination"""
    if field_for_question(context.pendingQuestion) != "origin":
        return
    params = classified.params
    if params.destination and not params.origin and not DIRECTION_WORDS.search(message):
        params.origin, params.destination = params.destination, None


def _merge_with_stored(stored: ExtractedParams, new: ExtractedParams) -> ExtractedParams:
    merged = merge_params(stored, new)
    if new.checkIn and not new.checkOut and new.checkIn != stored.checkIn:
        # A check-out computed for the old check-in no longer applies
        merged.checkOut = None
    return merged


def classify(
    message: str,
    history: Optional[List[HistoryMessage]] = None,
    context: Optional[ConversationState] = None,
    llm_classifier: Optional[LLMIntentClassifier] = None,
    mode: Optional[str] = None,
    today: Optional[date] = None
) -> ClassifiedIntent:
    """
    Resolve a chat message into an intent and a set of search params.

    Args:
        message: Raw user message
        history: Earlier turns (LLM prompt only)
        context: State remembered from the previous turn
        llm_classifier: Classifier to use instead of the shared one
        mode: "auto", "llm" or "pattern" (defaults to CLASSIFIER_MODE)
        today: Reference date for relative dates

    Returns:
        ClassifiedIntent with merged params, missingParams and followUpQuestion
    """
    context = context or ConversationState()
    mode = (mode or settings.CLASSIFIER_MODE).lower()

    if _use_llm(mode, llm_classifier):
        classifier = llm_classifier or get_llm_classifier()
        classified = classifier.classify(message, history, context, today)
    else:
        classified = _classify_with_patterns(message, context, today)

    final_intent = classified.type
    resumes = False

    if classified.type == IntentType.ANSWER_FOLLOWUP:
        _apply_pending_field(message, classified, context)
        if context.lastIntent and context.lastIntent != IntentType.ANSWER_FOLLOWUP:
            final_intent = context.lastIntent
            resumes = True
            logger.info(f"Follow-up answer resumes {final_intent.value}")
        else:
            logger.info("Follow-up answer without previous intent")

    # Derive check-in from this message's date before anything stored can shadow it
    new_params = normalize_params(final_intent, classified.params)
    params = new_params

    if resumes or (
        classified.type != IntentType.ANSWER_FOLLOWUP
        and not context.params.is_empty()
        and _same_family(context.lastIntent, final_intent)
    ):
        params = _merge_with_stored(context.params, new_params)
    elif (
        classified.type != IntentType.ANSWER_FOLLOWUP
        and context.params.destination
        and not params.destination
    ):
        # New kind of request, same place
        params = params.model_copy(update={"destination": context.params.destination})

    params = normalize_params(final_intent, params)
    missing = get_missing_params(final_intent, params)
    question = get_follow_up_question(missing[0], final_intent) if missing else None

    result = ClassifiedIntent(
        type=final_intent,
        confidence=classified.confidence,
        params=params,
        missingParams=missing,
        followUpQuestion=question,
        reasoning=classified.reasoning,
    )

    logger.info(f"Classified: {result.type.value}, params={params.filled()}, missing={missing}")
    return result
