# schemas/chat_schemas.py
"""
Pydantic v2 schemas for the travel chat service
Field names follow the JSON the chat frontend sends and renders (camelCase)
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
from enum import Enum


# ============================================
# Enums
# ============================================

class IntentType(str, Enum):
    BOOKING_FLIGHT = "BOOKING_FLIGHT"
    BOOKING_HOTEL = "BOOKING_HOTEL"
    BOOKING_TRIP = "BOOKING_TRIP"          # flight + hotel
    INFO_DESTINATION = "INFO_DESTINATION"  # places to visit, attractions
    INFO_ITINERARY = "INFO_ITINERARY"      # day-by-day plan
    INFO_GENERAL = "INFO_GENERAL"          # weather, visa, currency...
    ANSWER_FOLLOWUP = "ANSWER_FOLLOWUP"    # user answering our question
    GENERAL = "GENERAL"                    # greetings, thanks, chit-chat

    @property
    def is_booking(self) -> bool:
        return self.value.startswith("BOOKING_")

    @property
    def is_info(self) -> bool:
        return self.value.startswith("INFO_")


# ============================================
# Intent & Slots
# ============================================

PARAM_FIELDS = (
    "origin", "destination", "departureDate", "returnDate", "travelers",
    "cabinClass", "checkIn", "checkOut", "nights",
)


class ExtractedParams(BaseModel):
    """Search slots filled so far. Dates are ISO YYYY-MM-DD."""
    origin: Optional[str] = None
    destination: Optional[str] = None
    departureDate: Optional[str] = None
    returnDate: Optional[str] = None
    travelers: Optional[int] = None
    cabinClass: Optional[str] = None
    checkIn: Optional[str] = None
    checkOut: Optional[str] = None
    nights: Optional[int] = None

    def get(self, name: str) -> Any:
        return getattr(self, name, None)

    def filled(self) -> Dict[str, Any]:
        """Only the slots that hold a value"""
        return {k: v for k, v in self.model_dump().items() if v}

    def is_empty(self) -> bool:
        return not self.filled()


class ClassifiedIntent(BaseModel):
    """Output of classify(): what the user wants and what is still missing"""
    type: IntentType
    confidence: float = Field(0.5, ge=0, le=1)
    params: ExtractedParams = Field(default_factory=ExtractedParams)
    missingParams: List[str] = Field(default_factory=list)
    followUpQuestion: Optional[str] = None
    reasoning: Optional[str] = None


class ConversationState(BaseModel):
    """What we remember between turns"""
    lastIntent: Optional[IntentType] = None
    pendingQuestion: Optional[str] = None
    params: ExtractedParams = Field(default_factory=ExtractedParams)


# ============================================
# Results
# ============================================

class SearchResultItem(BaseModel):
    """One card in the chat results list"""
    type: Literal["flight", "hotel", "info"]
    id: str
    title: str
    subtitle: str
    price: Optional[float] = None
    details: Dict[str, str] = Field(default_factory=dict)
    url: Optional[str] = None


class WebSource(BaseModel):
    title: str
    url: str
    content: str = ""


# ============================================
# API
# ============================================

MAX_MESSAGE_LENGTH = 2000


class HistoryMessage(BaseModel):
    role: str = Field(..., description="'user' or 'assistant'")
    content: str


class ChatRequest(BaseModel):
    """Chat request model"""
    message: Optional[str] = Field(None, max_length=MAX_MESSAGE_LENGTH, description="User's message")
    conversationId: Optional[str] = Field(None, description="Conversation ID for context continuity")
    history: List[HistoryMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Chat response model"""
    message: str
    intent: IntentType
    searchResults: Optional[List[SearchResultItem]] = None
    webSources: Optional[List[WebSource]] = None
    state: ExtractedParams = Field(default_factory=ExtractedParams)
    needsMoreInfo: bool = False
    pendingQuestion: Optional[str] = None
    conversationId: Optional[str] = None


class ClassifyRequest(BaseModel):
    """Classify a message without running any search"""
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    history: List[HistoryMessage] = Field(default_factory=list)
    context: Optional[ConversationState] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    providers: Dict[str, bool] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
