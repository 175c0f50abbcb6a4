# llm/slot_filling.py
"""
Slot Filling
Which params each booking intent needs, how to ask for them,
and how params from consecutive turns are combined.
"""

from datetime import date, timedelta
from typing import Optional, List, Dict

from ..schemas.chat_schemas import IntentType, ExtractedParams, PARAM_FIELDS


# Required parameters for each booking intent, in the order we ask for them
REQUIRED_PARAMS: Dict[IntentType, List[str]] = {
    IntentType.BOOKING_FLIGHT: ["origin", "destination", "departureDate"],
    IntentType.BOOKING_HOTEL: ["destination", "checkIn"],
    IntentType.BOOKING_TRIP: ["destination", "departureDate"],
}

MISSING_PARAM_QUESTIONS: Dict[str, str] = {
    "origin": "Where will you be traveling from?",
    "destination": "Where would you like to go?",
    "departureDate": "When would you like to travel? (e.g., '15 Jan 2026', 'tomorrow', 'next week')",
    "checkIn": "When would you like to check in?",
    "returnDate": "When would you like to return? (or is this a one-way trip?)",
}

HOTEL_DESTINATION_QUESTION = "Which city would you like to stay in?"
DEFAULT_QUESTION = "Could you provide more details?"


def get_missing_params(intent: IntentType, params: ExtractedParams) -> List[str]:
    """Required params of the intent that have no value yet"""
    return [name for name in REQUIRED_PARAMS.get(intent, []) if not params.get(name)]


def get_follow_up_question(param: str, intent: Optional[IntentType] = None) -> str:
    if param == "destination" and intent == IntentType.BOOKING_HOTEL:
        return HOTEL_DESTINATION_QUESTION
    return MISSING_PARAM_QUESTIONS.get(param, DEFAULT_QUESTION)


def field_for_question(question: Optional[str]) -> Optional[str]:
    """
    Reverse lookup: which param a pending question was asking for.
    Accepts either the question text or the bare field name.
    """
    if not question:
        return None
    if question in PARAM_FIELDS:
        return question
    if question == HOTEL_DESTINATION_QUESTION:
        return "destination"
    for name, text in MISSING_PARAM_QUESTIONS.items():
        if text == question:
            return name
    return None


def merge_params(existing: Optional[ExtractedParams], new: ExtractedParams) -> ExtractedParams:
    """
    Field-wise merge of two param sets.
    A non-empty new value wins; otherwise the existing value is kept.
    Nothing is ever cleared.
    """
    if existing is None:
        return new.model_copy()
    merged = existing.model_dump()
    for name, value in new.model_dump().items():
        if value:
            merged[name] = value
    return ExtractedParams(**merged)


def normalize_params(intent: IntentType, params: ExtractedParams) -> ExtractedParams:
    """
    Fill derived hotel fields.

    Hotel and trip requests speak of a single travel date; it is the
    check-in date unless one was given explicitly. With a known number
    of nights the check-out date follows from it.
    """
    if intent not in (IntentType.BOOKING_HOTEL, IntentType.BOOKING_TRIP):
        return params

    params = params.model_copy()
    if not params.checkIn and params.departureDate:
        params.checkIn = params.departureDate

    if params.checkIn and params.nights and not params.checkOut:
        try:
            check_in = date.fromisoformat(params.checkIn)
        except ValueError:
            return params
        params.checkOut = (check_in + timedelta(days=params.nights)).isoformat()

    return params
