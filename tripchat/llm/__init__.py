# llm/__init__.py
"""
LLM Components Package

Contains the intent and text-generation components:
- classifier: classify(message, history, context)
- intent_parser: Regex intent classification and param extraction
- llm_classifier: OpenAI intent classification
- slot_filling: Required params, follow-up questions, param merging
- responder: Itinerary and small-talk generation
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .classifier import classify
    from .intent_parser import intent_parser, IntentParser, extract_params, parse_date
    from .llm_classifier import LLMIntentClassifier
    from .slot_filling import get_missing_params, get_follow_up_question, merge_params
    from .responder import LLMResponder

__all__ = [
    "classify",
    "intent_parser",
    "IntentParser",
    "extract_params",
    "parse_date",
    "LLMIntentClassifier",
    "get_missing_params",
    "get_follow_up_question",
    "merge_params",
    "LLMResponder"
]
