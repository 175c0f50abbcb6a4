# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for:
- Intent classification and slot filling
- Chat results
- API requests/responses
"""

from .chat_schemas import (
    # Enums
    IntentType,
    # Intent & Slots
    PARAM_FIELDS, ExtractedParams, ClassifiedIntent, ConversationState,
    # Results
    SearchResultItem, WebSource,
    # API
    HistoryMessage, ChatRequest, ChatResponse, ClassifyRequest, HealthResponse,
)

__all__ = [
    # Enums
    "IntentType",
    # Intent & Slots
    "PARAM_FIELDS", "ExtractedParams", "ClassifiedIntent", "ConversationState",
    # Results
    "SearchResultItem", "WebSource",
    # API
    "HistoryMessage", "ChatRequest", "ChatResponse", "ClassifyRequest", "HealthResponse",
]
