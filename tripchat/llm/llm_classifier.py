# llm/llm_classifier.py
"""
LLM Intent Classifier
Asks an OpenAI chat model to classify the message with the previous
turn's context in the prompt. Any failure degrades to a keyword
classification so a chat turn never fails because of the LLM.
"""

import json
import re
from datetime import date
from typing import Optional, List, Dict, Any

from loguru import logger
from openai import OpenAI

from ..config import settings
from ..errors import ClassificationError
from ..schemas.chat_schemas import (
    IntentType, ExtractedParams, ClassifiedIntent, ConversationState, HistoryMessage
)
from .prompts import CLASSIFICATION_PROMPT, CLASSIFIER_SYSTEM_PROMPT


JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")
NULL_LIKE = {"null", "none", "", "n/a", "undefined"}

FALLBACK_RULES = [
    (IntentType.BOOKING_FLIGHT, re.compile(r"\b(flight|fly|flying|flights)\b", re.I)),
    (IntentType.BOOKING_HOTEL, re.compile(r"\b(hotel|stay|accommodation|room)\b", re.I)),
    (IntentType.INFO_ITINERARY, re.compile(r"\b(itinerary|itinary|travel plan|day plan)\b", re.I)),
    (IntentType.INFO_DESTINATION, re.compile(r"\b(places?|visit|attractions?|things to do)\b", re.I)),
]


def build_context_summary(context: Optional[ConversationState]) -> str:
    """One-line summary of the previous turn for the prompt"""
    if not context:
        return "None"
    parts = []
    if context.lastIntent:
        parts.append(f"Last intent: {context.lastIntent.value}")
    if context.pendingQuestion:
        parts.append(f'We asked: "{context.pendingQuestion}"')
    if context.params.origin:
        parts.append(f"Origin: {context.params.origin}")
    if context.params.destination:
        parts.append(f"Destination: {context.params.destination}")
    if context.params.departureDate:
        parts.append(f"Date: {context.params.departureDate}")
    return ", ".join(parts) if parts else "None"


def build_history_summary(history: Optional[List[HistoryMessage]], turns: int = 4) -> str:
    if not history:
        return "None"
    return "\n".join(f"{m.role}: {m.content}" for m in history[-turns:])


def _clean_params(raw: Dict[str, Any]) -> ExtractedParams:
    """Drop null-like values and anything that does not fit the param types"""
    cleaned: Dict[str, Any] = {}
    for name, value in (raw or {}).items():
        if name not in ExtractedParams.model_fields or value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value.lower() in NULL_LIKE:
                continue
        if name in ("travelers", "nights"):
            try:
                value = int(value)
            except (TypeError, ValueError):
                continue
            if value <= 0:
                continue
        elif name in ("origin", "destination"):
            value = str(value).lower()
        else:
            value = str(value)
        cleaned[name] = value
    return ExtractedParams(**cleaned)


def parse_classification(response_text: str) -> ClassifiedIntent:
    """
    Turn the model's reply into a ClassifiedIntent.

    Raises:
        ClassificationError: no JSON object, invalid JSON or unknown intent
    """
    match = JSON_BLOCK_PATTERN.search(response_text or "")
    if not match:
        raise ClassificationError("No JSON found in LLM response")

    try:
        analysis = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Invalid JSON in LLM response: {e}")

    # Older prompts used "intent" instead of "type"
    intent_value = analysis.get("type") or analysis.get("intent")
    try:
        intent = IntentType(str(intent_value).upper())
    except ValueError:
        raise ClassificationError(f"Unknown intent: {intent_value}")

    try:
        confidence = float(analysis.get("confidence", 0.8))
    except (TypeError, ValueError):
        confidence = 0.8

    return ClassifiedIntent(
        type=intent,
        confidence=min(max(confidence, 0.0), 1.0),
        params=_clean_params(analysis.get("params") or {}),
        reasoning=analysis.get("reasoning"),
    )


def fallback_classify(message: str) -> ClassifiedIntent:
    """Keyword classification used when the LLM is unavailable or misbehaves"""
    for intent, pattern in FALLBACK_RULES:
        if pattern.search(message):
            return ClassifiedIntent(type=intent, confidence=0.5, reasoning="keyword fallback")
    return ClassifiedIntent(type=IntentType.GENERAL, confidence=0.3, reasoning="keyword fallback")


class LLMIntentClassifier:
    """
    Classifies messages with an OpenAI chat model.

    The client can be injected (tests pass a fake); otherwise one is
    created from OPENAI_API_KEY.
    """

    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        self.model = model or settings.OPENAI_MODEL
        self.client = client

        if self.client is None and settings.use_openai:
            try:
                self.client = OpenAI(api_key=settings.OPENAI_API_KEY)
                logger.info("LLMIntentClassifier: OpenAI client initialized")
            except Exception as e:
                logger.warning(f"LLMIntentClassifier: OpenAI init failed: {e}")

    @property
    def available(self) -> bool:
        return self.client is not None

    def build_prompt(
        self,
        message: str,
        history: Optional[List[HistoryMessage]] = None,
        context: Optional[ConversationState] = None,
        today: Optional[date] = None
    ) -> str:
        return CLASSIFICATION_PROMPT.format(
            context=build_context_summary(context),
            history=build_history_summary(history),
            message=message,
            today=(today or date.today()).isoformat(),
        )

    def classify(
        self,
        message: str,
        history: Optional[List[HistoryMessage]] = None,
        context: Optional[ConversationState] = None,
        today: Optional[date] = None
    ) -> ClassifiedIntent:
        """
        Classify a message; never raises.

        Returns:
            ClassifiedIntent with params from this message only
        """
        if not self.available:
            logger.warning("LLM classifier has no client, using keyword fallback")
            return fallback_classify(message)

        prompt = self.build_prompt(message, history, context, today)

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=300,
                temperature=0.1
            )
            response_text = completion.choices[0].message.content or ""
            logger.debug(f"LLM classification response: {response_text}")
            result = parse_classification(response_text)
        except ClassificationError as e:
            logger.warning(f"LLM classification unusable: {e.message}")
            return fallback_classify(message)
        except Exception as e:
            logger.error(f"LLM classification error: {e}")
            return fallback_classify(message)

        logger.info(f"LLM classified: {result.type.value} ({result.confidence:.2f}) - {result.reasoning}")
        return result
