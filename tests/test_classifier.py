import json

from tripchat.config import settings
from tripchat.llm.classifier import classify
from tripchat.llm.llm_classifier import LLMIntentClassifier
from tripchat.schemas.chat_schemas import IntentType, ConversationState, ExtractedParams


def test_complete_flight_request(today):
    result = classify("Find flights from Delhi to Goa on 15 april", today=today)
    assert result.type == IntentType.BOOKING_FLIGHT
    assert result.params.origin == "delhi"
    assert result.params.destination == "goa"
    assert result.params.departureDate == "2026-04-15"
    assert result.missingParams == []
    assert result.followUpQuestion is None


def test_missing_params_and_first_question(today):
    result = classify("book a flight to goa", today=today)
    assert result.type == IntentType.BOOKING_FLIGHT
    assert result.missingParams == ["origin", "departureDate"]
    assert result.followUpQuestion == "Where will you be traveling from?"


def test_hotel_question_uses_hotel_wording(today):
    result = classify("find me a hotel", today=today)
    assert result.missingParams == ["destination", "checkIn"]
    assert result.followUpQuestion == "Which city would you like to stay in?"


def test_hotel_request_with_date_is_complete(today):
    result = classify("find me a hotel in jaipur on 20 march for 2 nights", today=today)
    assert result.type == IntentType.BOOKING_HOTEL
    assert result.params.checkIn == "2026-03-20"
    assert result.params.checkOut == "2026-03-22"
    assert result.missingParams == []


def test_followup_answer_resumes_previous_intent(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_FLIGHT,
        pendingQuestion="When would you like to travel? (e.g., '15 Jan 2026', 'tomorrow', 'next week')",
        params=ExtractedParams(origin="delhi", destination="goa"),
    )
    result = classify("tomorrow", context=context, today=today)
    assert result.type == IntentType.BOOKING_FLIGHT
    assert result.params.origin == "delhi"
    assert result.params.destination == "goa"
    assert result.params.departureDate == "2026-03-11"
    assert result.missingParams == []


def test_bare_city_answers_origin_question(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_FLIGHT,
        pendingQuestion="Where will you be traveling from?",
        params=ExtractedParams(destination="goa"),
    )
    result = classify("mumbai", context=context, today=today)
    assert result.type == IntentType.BOOKING_FLIGHT
    assert result.params.origin == "mumbai"
    assert result.params.destination == "goa"
    assert result.missingParams == ["departureDate"]


def test_date_answers_hotel_check_in(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_HOTEL,
        pendingQuestion="When would you like to check in?",
        params=ExtractedParams(destination="goa"),
    )
    result = classify("25 march", context=context, today=today)
    assert result.type == IntentType.BOOKING_HOTEL
    assert result.params.checkIn == "2026-03-25"
    assert result.missingParams == []


def test_message_without_params_is_not_a_followup(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_FLIGHT,
        pendingQuestion="Where will you be traveling from?",
        params=ExtractedParams(destination="goa"),
    )
    result = classify("thanks", context=context, today=today)
    assert result.type == IntentType.GENERAL


def test_same_family_merges_stored_params(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_FLIGHT,
        params=ExtractedParams(origin="delhi", destination="goa", departureDate="2026-04-01"),
    )
    result = classify("find me a hotel", context=context, today=today)
    assert result.type == IntentType.BOOKING_HOTEL
    assert result.params.destination == "goa"
    assert result.params.checkIn == "2026-04-01"


def test_family_switch_keeps_only_destination(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_FLIGHT,
        params=ExtractedParams(origin="delhi", destination="goa", departureDate="2026-04-01"),
    )
    result = classify("tourist places to visit", context=context, today=today)
    assert result.type == IntentType.INFO_DESTINATION
    assert result.params.destination == "goa"
    assert result.params.origin is None
    assert result.params.departureDate is None


def test_llm_followup_without_context(openai_client_factory, today):
    reply = json.dumps({"type": "ANSWER_FOLLOWUP", "confidence": 0.8, "params": {"destination": "goa"}})
    llm = LLMIntentClassifier(client=openai_client_factory(reply))
    result = classify("goa", llm_classifier=llm, today=today)
    assert result.type == IntentType.ANSWER_FOLLOWUP
    assert result.missingParams == []


def test_llm_followup_with_context(openai_client_factory, today):
    reply = json.dumps({"type": "ANSWER_FOLLOWUP", "confidence": 0.9,
                        "params": {"departureDate": "2026-04-02"}})
    llm = LLMIntentClassifier(client=openai_client_factory(reply))
    context = ConversationState(
        lastIntent=IntentType.BOOKING_TRIP,
        pendingQuestion="When would you like to travel? (e.g., '15 Jan 2026', 'tomorrow', 'next week')",
        params=ExtractedParams(destination="goa"),
    )
    result = classify("2nd april", context=context, llm_classifier=llm, today=today)
    assert result.type == IntentType.BOOKING_TRIP
    assert result.params.destination == "goa"
    assert result.params.departureDate == "2026-04-02"
    assert result.params.checkIn == "2026-04-02"
    assert result.missingParams == []


def test_pattern_mode_ignores_llm(openai_client_factory, today, monkeypatch):
    monkeypatch.setattr(settings, "CLASSIFIER_MODE", "pattern")
    llm = LLMIntentClassifier(client=openai_client_factory())
    result = classify("hello", llm_classifier=llm, today=today)
    assert result.type == IntentType.GENERAL
    llm.client.chat.completions.create.assert_not_called()


def test_new_hotel_date_replaces_stored_check_in(today):
    context = ConversationState(
        lastIntent=IntentType.BOOKING_HOTEL,
        params=ExtractedParams(destination="goa", checkIn="2026-03-20", checkOut="2026-03-23", nights=3),
    )
    result = classify("find me a hotel in goa on 25 march", context=context, today=today)
    assert result.type == IntentType.BOOKING_HOTEL
    assert result.params.departureDate == "2026-03-25"
    assert result.params.checkIn == "2026-03-25"
    assert result.params.checkOut == "2026-03-28"


def test_llm_followup_date_replaces_stored_check_in(openai_client_factory, today):
    reply = json.dumps({"type": "ANSWER_FOLLOWUP", "confidence": 0.9,
                        "params": {"departureDate": "2026-04-05"}})
    llm = LLMIntentClassifier(client=openai_client_factory(reply))
    context = ConversationState(
        lastIntent=IntentType.BOOKING_HOTEL,
        pendingQuestion="When would you like to check in?",
        params=ExtractedParams(destination="goa", checkIn="2026-04-01", checkOut="2026-04-02"),
    )
    result = classify("actually the 5th", context=context, llm_classifier=llm, today=today)
    assert result.type == IntentType.BOOKING_HOTEL
    assert result.params.checkIn == "2026-04-05"
    assert result.params.checkOut is None
    assert result.missingParams == []
