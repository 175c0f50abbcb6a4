from unittest.mock import AsyncMock

import httpx
import pytest

from tripchat.agents.chat_agent import ChatAgent, FOLLOWUP_WITHOUT_CONTEXT, route_by_intent
from tripchat.interfaces.amadeus_client import AmadeusClient
from tripchat.interfaces.context_store import ContextStore, ConversationContext
from tripchat.interfaces.conversation_store import ConversationStore
from tripchat.interfaces.web_search import WebSearch, SearchOutcome, TavilyClient, BraveSearchClient
from tripchat.llm.prompts import GENERAL_CHAT_FALLBACK
from tripchat.llm.responder import LLMResponder
from tripchat.schemas.chat_schemas import IntentType, ClassifiedIntent, WebSource


def offline_web_search():
    return WebSearch(tavily=TavilyClient(api_key=""), brave=BraveSearchClient(api_key=""))


@pytest.fixture
def agent():
    return ChatAgent(
        amadeus=AmadeusClient(client_id="", client_secret=""),
        web_search=offline_web_search(),
        responder=LLMResponder(),
        context_store=ContextStore(use_redis=False),
        conversation_store=ConversationStore(use_redis=False),
        classifier_mode="pattern",
    )


def test_route_by_intent():
    assert route_by_intent({"classified": ClassifiedIntent(type=IntentType.INFO_GENERAL)}) == "destination_info"
    assert route_by_intent({"classified": ClassifiedIntent(type=IntentType.BOOKING_TRIP)}) == "trip"


@pytest.mark.asyncio
async def test_flight_slot_filling_across_turns(agent):
    first = await agent.process_message("flights to goa")
    chat_id = first.conversationId
    assert chat_id.startswith("chat-")
    assert first.intent == IntentType.BOOKING_FLIGHT
    assert first.needsMoreInfo
    assert first.pendingQuestion == "Where will you be traveling from?"

    second = await agent.process_message("delhi", conversation_id=chat_id)
    assert second.intent == IntentType.BOOKING_FLIGHT
    assert second.state.origin == "delhi"
    assert second.state.destination == "goa"
    assert second.pendingQuestion.startswith("When would you like to travel?")

    third = await agent.process_message("tomorrow", conversation_id=chat_id)
    assert third.intent == IntentType.BOOKING_FLIGHT
    assert not third.needsMoreInfo
    assert third.state.departureDate
    assert third.message == "I found flights from Delhi to Goa:"
    assert len(third.searchResults) == 5
    assert third.searchResults[0].id == "fallback-flight-0"

    state = await agent.context_store.get_state(chat_id)
    assert state.lastIntent == IntentType.BOOKING_FLIGHT
    assert state.pendingQuestion is None
    assert state.params.departureDate == third.state.departureDate

    history = await agent.conversation_store.get_history(chat_id)
    assert len(history) == 6
    assert history[-1]["intent"] == "BOOKING_FLIGHT"


@pytest.mark.asyncio
async def test_live_flight_results(agent):
    agent.amadeus.search_flights = AsyncMock(return_value={"data": [{
        "id": "1",
        "price": {"total": "100"},
        "itineraries": [{"duration": "PT2H", "segments": [{
            "carrierCode": "AI", "number": "101",
            "departure": {"iataCode": "DEL", "at": "2026-04-01T06:00:00"},
            "arrival": {"iataCode": "GOI", "at": "2026-04-01T08:00:00"},
        }]}],
    }]})

    response = await agent.process_message("find flights from delhi to goa on 2026-04-01")

    assert response.message.startswith("Here are flights from Delhi to Goa on April 1, 2026")
    assert response.searchResults[0].subtitle == "Air India"
    kwargs = agent.amadeus.search_flights.call_args.kwargs
    assert kwargs["origin"] == "DEL"
    assert kwargs["destination"] == "GOI"


@pytest.mark.asyncio
async def test_hotel_asks_for_check_in(agent):
    response = await agent.process_message("hotels in goa")
    assert response.intent == IntentType.BOOKING_HOTEL
    assert response.message == "Looking for hotels 🏨\n\nWhen would you like to check in?"
    assert response.pendingQuestion == "When would you like to check in?"


@pytest.mark.asyncio
async def test_hotel_fallback_results(agent):
    response = await agent.process_message("hotels in jaipur on 2026-05-02")
    assert response.message == "Here are the best hotels in Jaipur for May 2, 2026:"
    assert [r.id for r in response.searchResults][:2] == ["fallback-hotel-0", "fallback-hotel-1"]


@pytest.mark.asyncio
async def test_bare_details_without_context(agent):
    # A pending question with no remembered intent
    await agent.context_store.update_context(ConversationContext(
        chat_id="c1", metadata={"pendingQuestion": "Where would you like to go?"}
    ))
    response = await agent.process_message("goa", conversation_id="c1")
    assert response.message == FOLLOWUP_WITHOUT_CONTEXT
    assert response.intent == IntentType.GENERAL
    assert response.needsMoreInfo


@pytest.mark.asyncio
async def test_general_without_llm(agent):
    response = await agent.process_message("hello")
    assert response.intent == IntentType.GENERAL
    assert response.message == GENERAL_CHAT_FALLBACK


@pytest.mark.asyncio
async def test_destination_info_uses_web_answer(agent):
    agent.web_search.search = AsyncMock(return_value=SearchOutcome(
        answer="Goa has beaches and forts.",
        sources=[WebSource(title="Goa", url="https://travel.test/goa", content="Beaches")],
        provider="tavily",
    ))

    response = await agent.process_message("tourist places in goa")

    assert response.intent == IntentType.INFO_DESTINATION
    assert response.message == "Goa has beaches and forts."
    assert response.searchResults[0].details["source"] == "travel.test"
    assert response.webSources[0].url == "https://travel.test/goa"


@pytest.mark.asyncio
async def test_itinerary_without_llm_or_web(agent):
    response = await agent.process_message("5 day itinerary for jaipur")
    assert response.intent == IntentType.INFO_ITINERARY
    assert response.message.startswith("I'd recommend 5 days in Jaipur")


@pytest.mark.asyncio
async def test_itinerary_with_llm(agent, openai_client_factory):
    agent.responder = LLMResponder(client=openai_client_factory("Day 1: Amber Fort"))
    response = await agent.process_message("itinerary for jaipur")
    assert response.message == "Day 1: Amber Fort"


@pytest.mark.asyncio
async def test_family_switch_does_not_bring_back_old_slots(agent):
    first = await agent.process_message("find flights from delhi to goa on 2026-04-01")
    chat_id = first.conversationId
    assert not first.needsMoreInfo

    info = await agent.process_message("tourist places to visit in paris", conversation_id=chat_id)
    assert info.intent == IntentType.INFO_DESTINATION
    assert info.state.origin is None

    flight = await agent.process_message("book a flight", conversation_id=chat_id)
    assert flight.pendingQuestion == "Where will you be traveling from?"

    stored = await agent.context_store.get_context(chat_id)
    assert stored.intent == "flight"
    assert stored.destination == "paris"
    assert stored.origin is None
    assert stored.departure_date is None

    answer = await agent.process_message("mumbai", conversation_id=chat_id)
    assert answer.needsMoreInfo
    assert answer.state.origin == "mumbai"
    assert answer.state.destination == "paris"
    assert answer.state.departureDate is None
    assert answer.pendingQuestion.startswith("When would you like to travel?")


@pytest.mark.asyncio
async def test_context_keeps_creation_time(agent):
    first = await agent.process_message("hotels in goa")
    created = (await agent.context_store.get_context(first.conversationId)).created_at

    await agent.process_message("2026-05-02", conversation_id=first.conversationId)

    stored = await agent.context_store.get_context(first.conversationId)
    assert stored.created_at == created
    assert stored.check_in == "2026-05-02"


@pytest.mark.asyncio
async def test_trip_combines_flights_and_hotels(agent):
    response = await agent.process_message("book a trip to goa on 2026-04-10 from delhi")

    assert response.intent == IntentType.BOOKING_TRIP
    assert response.message == "Perfect! Here are options for your trip to Goa on April 10, 2026:"
    assert [r.type for r in response.searchResults] == ["flight"] * 3 + ["hotel"] * 2
    assert response.searchResults[0].title == "Delhi → Goa"


@pytest.mark.asyncio
async def test_trip_without_origin_uses_sample_flights(agent):
    agent.amadeus.search_flights = AsyncMock()
    response = await agent.process_message("trip to goa on 2026-04-10")

    assert response.searchResults[0].title == "Origin → Goa"
    agent.amadeus.search_flights.assert_not_called()


@pytest.mark.asyncio
async def test_unreadable_flight_response_falls_back(agent):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        return httpx.Response(200, text="<html>maintenance</html>")

    agent.amadeus = AmadeusClient(
        base_url="https://amadeus.test", client_id="id", client_secret="secret",
        transport=httpx.MockTransport(handler),
    )
    response = await agent.process_message("find flights from delhi to goa on 2026-04-01")

    assert response.message == "I found flights from Delhi to Goa:"
    assert response.searchResults[0].id == "fallback-flight-0"


@pytest.mark.asyncio
async def test_itinerary_from_web_results_without_llm(agent):
    agent.web_search.search = AsyncMock(return_value=SearchOutcome(
        sources=[WebSource(title="Jaipur in 3 days", url="https://guide.test/jaipur", content="Amber Fort")],
        provider="brave",
    ))

    response = await agent.process_message("itinerary for jaipur")

    assert response.message == "Here's what I found for 3 days in Jaipur:"
    assert response.searchResults[0].title == "Jaipur in 3 days"
    assert response.webSources[0].url == "https://guide.test/jaipur"
