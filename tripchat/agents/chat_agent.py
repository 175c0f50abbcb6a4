# agents/chat_agent.py
"""
LangGraph-based Chat Agent
Classifies each message, then hands it to exactly one handler.

┌─────────────────┐
│    classify     │  (intent + merged params + missing params)
└────────┬────────┘
         │
    ┌────┴────┬────────┬───────────┬──────────────────┬──────────┬─────────┐
    ▼         ▼        ▼           ▼                  ▼          ▼         ▼
┌────────┐┌───────┐┌──────┐┌───────────┐┌──────────────────┐┌──────────┐┌─────────┐
│ flight ││ hotel ││ trip ││ itinerary ││ destination_info ││ followup ││ general │
└────┬───┘└───┬───┘└──┬───┘└─────┬─────┘└────────┬─────────┘└────┬─────┘└────┬────┘
     └────────┴───────┴──────────┴───────────────┴───────────────┴───────────┘
                                    │
                                   END

Booking handlers ask for the first missing param before searching.
Provider failures never surface to the user: they fall back to
canned results.
"""

from datetime import date, timedelta
from typing import Dict, Any, Optional, List, Tuple, TypedDict
from loguru import logger

from langgraph.graph import StateGraph, END

from ..errors import TripChatError
from ..schemas.chat_schemas import (
    IntentType, ExtractedParams, ClassifiedIntent, ConversationState,
    HistoryMessage, ChatResponse, SearchResultItem
)
from ..llm.classifier import classify
from ..llm.llm_classifier import LLMIntentClassifier
from ..llm.responder import LLMResponder
from ..llm.slot_filling import get_missing_params, get_follow_up_question
from ..llm.prompts import (
    ITINERARY_PROMPT, ITINERARY_SYSTEM_PROMPT,
    GENERAL_CHAT_SYSTEM_PROMPT, GENERAL_CHAT_FALLBACK
)
from ..interfaces.amadeus_client import AmadeusClient, get_amadeus_client
from ..interfaces.web_search import WebSearch, get_web_search
from ..interfaces.context_store import ContextStore, ConversationContext, get_context_store
from ..interfaces.conversation_store import ConversationStore, get_conversation_store
from ..utils.travel_helpers import (
    CITY_TO_IATA, get_iata_code, get_hotel_city_code, display_city, format_display_date,
    transform_flight_offers, transform_hotel_offers,
    fallback_flights, fallback_hotels, info_results, generate_chat_id
)


FOLLOWUP_WITHOUT_CONTEXT = (
    "I noticed you provided some details! Are you looking for flights, hotels, "
    "or information about a destination?"
)
ITINERARY_DESTINATION_QUESTION = "Which destination would you like me to create an itinerary for?"
INFO_DESTINATION_QUESTION = "Which destination would you like to know about?"

DEFAULT_ITINERARY_DAYS = 3
HISTORY_TURNS = 4


# ============================================
# State Definition (TypedDict for LangGraph)
# ============================================
class ChatState(TypedDict, total=False):
    """State passed between the graph nodes"""
    # Input
    message: str
    history: List[HistoryMessage]
    context: Optional[ConversationState]

    # Routing
    classified: ClassifiedIntent

    # Output
    response: ChatResponse


INTENT_ROUTES: Dict[IntentType, str] = {
    IntentType.BOOKING_FLIGHT: "flight",
    IntentType.BOOKING_HOTEL: "hotel",
    IntentType.BOOKING_TRIP: "trip",
    IntentType.INFO_ITINERARY: "itinerary",
    IntentType.INFO_DESTINATION: "destination_info",
    IntentType.INFO_GENERAL: "destination_info",
    IntentType.ANSWER_FOLLOWUP: "followup",
    IntentType.GENERAL: "general",
}


def route_by_intent(state: ChatState) -> str:
    """Conditional edge: pick the handler node for the classified intent"""
    return INTENT_ROUTES.get(state["classified"].type, "general")


def _ask(intent: IntentType, params: ExtractedParams, question: str, prefix: str = "") -> ChatResponse:
    return ChatResponse(
        message=f"{prefix}{question}",
        intent=intent,
        state=params,
        needsMoreInfo=True,
        pendingQuestion=question,
    )


class ChatAgent:
    """
    Runs one chat turn through the graph and keeps per-chat context.
    Every collaborator can be injected; defaults are the shared instances.
    """

    def __init__(
        self,
        amadeus: Optional[AmadeusClient] = None,
        web_search: Optional[WebSearch] = None,
        responder: Optional[LLMResponder] = None,
        llm_classifier: Optional[LLMIntentClassifier] = None,
        context_store: Optional[ContextStore] = None,
        conversation_store: Optional[ConversationStore] = None,
        classifier_mode: Optional[str] = None
    ):
        self.amadeus = amadeus or get_amadeus_client()
        self.web_search = web_search or get_web_search()
        self.responder = responder or LLMResponder()
        self.llm_classifier = llm_classifier
        self.context_store = context_store or get_context_store()
        self.conversation_store = conversation_store or get_conversation_store()
        self.classifier_mode = classifier_mode

        self.graph = self.build_graph().compile()
        logger.info("ChatAgent initialized with graph workflow")

    def build_graph(self) -> StateGraph:
        workflow = StateGraph(ChatState)

        workflow.add_node("classify", self.classify_node)
        workflow.add_node("flight", self.flight_node)
        workflow.add_node("hotel", self.hotel_node)
        workflow.add_node("trip", self.trip_node)
        workflow.add_node("itinerary", self.itinerary_node)
        workflow.add_node("destination_info", self.destination_info_node)
        workflow.add_node("followup", self.followup_node)
        workflow.add_node("general", self.general_node)

        workflow.set_entry_point("classify")

        handlers = sorted(set(INTENT_ROUTES.values()))
        workflow.add_conditional_edges("classify", route_by_intent, {name: name for name in handlers})
        for name in handlers:
            workflow.add_edge(name, END)

        return workflow

    # ============================================
    # Provider calls with fallbacks
    # ============================================

    async def _resolve_airport(self, city: str) -> str:
        """Local table first, then Amadeus location lookup, then a guess"""
        if city.strip().lower() in CITY_TO_IATA or not self.amadeus.configured:
            return get_iata_code(city)
        try:
            data = await self.amadeus.search_locations(city)
            for location in data.get("data", []):
                if location.get("iataCode"):
                    return location["iataCode"]
        except TripChatError as e:
            logger.warning(f"Location lookup failed for {city}: {e.message}")
        return get_iata_code(city)

    async def _search_flights(self, params: ExtractedParams, limit: int = 5) -> Tuple[List[SearchResultItem], bool]:
        """Flight cards and whether they are live results"""
        try:
            data = await self.amadeus.search_flights(
                origin=await self._resolve_airport(params.origin),
                destination=await self._resolve_airport(params.destination),
                departure_date=params.departureDate,
                adults=params.travelers or 1,
                return_date=params.returnDate,
                travel_class=params.cabinClass,
            )
            results = transform_flight_offers(data, params, limit=limit)
            if results:
                return results, True
            logger.warning("Flight search returned no offers, using fallback flights")
        except TripChatError as e:
            logger.warning(f"Flight search unavailable, using fallback flights: {e.message}")
        return fallback_flights(params)[:limit], False

    async def _search_hotels(self, params: ExtractedParams, limit: int = 5) -> List[SearchResultItem]:
        destination = params.destination
        try:
            listing = await self.amadeus.search_hotels_by_city(get_hotel_city_code(destination))
            hotel_ids = [h["hotelId"] for h in listing.get("data", [])[:10] if h.get("hotelId")]
            if hotel_ids:
                check_in = params.checkIn
                check_out = params.checkOut or (
                    date.fromisoformat(check_in) + timedelta(days=params.nights or 1)
                ).isoformat()
                offers = await self.amadeus.get_hotel_offers(
                    hotel_ids, check_in, check_out, adults=params.travelers or 1
                )
                results = transform_hotel_offers(offers, destination, limit=limit)
                if results:
                    return results
            logger.warning(f"No hotel offers for {destination}, using fallback hotels")
        except (TripChatError, ValueError) as e:
            logger.warning(f"Hotel search unavailable, using fallback hotels: {e}")
        return fallback_hotels(destination)[:limit]

    # ============================================
    # Node Functions
    # ============================================

    async def classify_node(self, state: ChatState) -> Dict[str, Any]:
        classified = classify(
            state["message"],
            history=state.get("history"),
            context=state.get("context"),
            llm_classifier=self.llm_classifier,
            mode=self.classifier_mode,
        )
        return {"classified": classified}

    async def flight_node(self, state: ChatState) -> Dict[str, Any]:
        intent = IntentType.BOOKING_FLIGHT
        params = state["classified"].params

        missing = get_missing_params(intent, params)
        if missing:
            return {"response": _ask(intent, params, get_follow_up_question(missing[0], intent))}

        origin = display_city(params.origin)
        destination = display_city(params.destination)
        logger.info(f"Searching flights: {origin} -> {destination} on {params.departureDate}")

        results, live = await self._search_flights(params)
        if live:
            message = (f"Here are flights from {origin} to {destination} on "
                       f"{format_display_date(params.departureDate)}. Click \"Book\" to proceed! ✈️")
        else:
            message = f"I found flights from {origin} to {destination}:"

        return {"response": ChatResponse(message=message, intent=intent, searchResults=results, state=params)}

    async def hotel_node(self, state: ChatState) -> Dict[str, Any]:
        intent = IntentType.BOOKING_HOTEL
        params = state["classified"].params

        missing = get_missing_params(intent, params)
        if missing:
            question = get_follow_up_question(missing[0], intent)
            return {"response": _ask(intent, params, question, prefix="Looking for hotels 🏨\n\n")}

        results = await self._search_hotels(params)
        message = (f"Here are the best hotels in {display_city(params.destination)} for "
                   f"{format_display_date(params.checkIn)}:")
        return {"response": ChatResponse(message=message, intent=intent, searchResults=results, state=params)}

    async def trip_node(self, state: ChatState) -> Dict[str, Any]:
        intent = IntentType.BOOKING_TRIP
        params = state["classified"].params

        missing = get_missing_params(intent, params)
        if missing:
            return {"response": _ask(intent, params, get_follow_up_question(missing[0], intent))}

        if params.origin:
            flights, _ = await self._search_flights(params, limit=3)
        else:
            flights = fallback_flights(params)[:3]
        hotels = await self._search_hotels(params, limit=2)

        message = (f"Perfect! Here are options for your trip to {display_city(params.destination)} on "
                   f"{format_display_date(params.departureDate)}:")
        return {"response": ChatResponse(
            message=message, intent=intent, searchResults=flights + hotels, state=params
        )}

    async def itinerary_node(self, state: ChatState) -> Dict[str, Any]:
        intent = IntentType.INFO_ITINERARY
        params = state["classified"].params

        if not params.destination:
            return {"response": _ask(intent, params, ITINERARY_DESTINATION_QUESTION)}

        days = params.nights or DEFAULT_ITINERARY_DAYS
        city = display_city(params.destination)
        outcome = await self.web_search.search(f"{days} day itinerary {params.destination} travel guide", max_results=2)
        web_context = outcome.answer or "\n".join(s.content for s in outcome.sources) or "No extra information."

        if self.responder.available:
            prompt = ITINERARY_PROMPT.format(nights=days, destination=city, web_context=web_context)
            text = await self.responder.generate(prompt, ITINERARY_SYSTEM_PROMPT, max_tokens=1000)
            if text:
                return {"response": ChatResponse(
                    message=text, intent=intent, webSources=outcome.sources or None, state=params
                )}

        # No LLM: answer from the web results alone
        if not outcome.empty:
            return {"response": ChatResponse(
                message=outcome.answer or f"Here's what I found for {days} days in {city}:",
                intent=intent,
                searchResults=info_results(outcome.sources),
                webSources=outcome.sources,
                state=params,
            )}

        message = (f"I'd recommend {days} days in {city} to explore the major attractions. "
                   "Would you like me to search for more specific information?")
        return {"response": ChatResponse(message=message, intent=intent, state=params)}

    async def destination_info_node(self, state: ChatState) -> Dict[str, Any]:
        classified = state["classified"]
        intent = classified.type
        params = classified.params

        if not params.destination:
            return {"response": _ask(intent, params, INFO_DESTINATION_QUESTION)}

        outcome = await self.web_search.search(f"{state['message']} {params.destination}", max_results=3)
        message = outcome.answer or f"Here's what I found about {display_city(params.destination)}:"
        return {"response": ChatResponse(
            message=message,
            intent=intent,
            searchResults=info_results(outcome.sources),
            webSources=outcome.sources,
            state=params,
        )}

    async def followup_node(self, state: ChatState) -> Dict[str, Any]:
        # Reached only when there was no earlier intent to resume
        return {"response": ChatResponse(
            message=FOLLOWUP_WITHOUT_CONTEXT,
            intent=IntentType.GENERAL,
            state=state["classified"].params,
            needsMoreInfo=True,
        )}

    async def general_node(self, state: ChatState) -> Dict[str, Any]:
        history = (state.get("history") or [])[-HISTORY_TURNS:]
        text = None
        if self.responder.available:
            text = await self.responder.generate(
                state["message"], GENERAL_CHAT_SYSTEM_PROMPT, history=history, max_tokens=150
            )
        return {"response": ChatResponse(
            message=text or GENERAL_CHAT_FALLBACK,
            intent=IntentType.GENERAL,
            state=state["classified"].params,
        )}

    # ============================================
    # Main Interface
    # ============================================

    async def _load_history(self, chat_id: str) -> List[HistoryMessage]:
        stored = await self.conversation_store.get_history(chat_id, limit=HISTORY_TURNS * 2)
        return [HistoryMessage(role=m["role"], content=m["content"]) for m in stored]

    async def process_message(
        self,
        message: str,
        history: Optional[List[HistoryMessage]] = None,
        conversation_id: Optional[str] = None
    ) -> ChatResponse:
        """
        Run one chat turn.

        Args:
            message: User message
            history: Earlier turns sent by the client; loaded from the
                conversation store when empty
            conversation_id: Chat to continue; a new one is created when None

        Returns:
            ChatResponse with conversationId set
        """
        chat_id = conversation_id or generate_chat_id()

        context = None
        context_record = None
        if conversation_id:
            context_record = await self.context_store.get_context(chat_id)
            context = context_record.to_state() if context_record else None
            if not history:
                history = await self._load_history(chat_id)

        final_state = await self.graph.ainvoke({
            "message": message,
            "history": history or [],
            "context": context,
        })

        classified: ClassifiedIntent = final_state["classified"]
        response: ChatResponse = final_state["response"]
        response.conversationId = chat_id

        # The response state is already merged with earlier turns, so it replaces the stored record
        resolved = classified.type if classified.type != IntentType.ANSWER_FOLLOWUP else None
        record = ConversationContext.from_state(
            chat_id,
            ConversationState(lastIntent=resolved, pendingQuestion=response.pendingQuestion, params=response.state),
        )
        if context_record is not None:
            record.created_at = context_record.created_at
        await self.context_store.save_context(record)

        await self.conversation_store.save_message(chat_id, "user", message)
        await self.conversation_store.save_message(chat_id, "assistant", response.message, intent=response.intent.value)

        logger.info(f"Chat {chat_id}: {classified.type.value} -> needsMoreInfo={response.needsMoreInfo}")
        return response


# ============================================
# Global Instance
# ============================================
_agent_instance: Optional[ChatAgent] = None


def get_chat_agent() -> ChatAgent:
    """Get singleton instance of ChatAgent"""
    global _agent_instance
    if _agent_instance is None:
        _agent_instance = ChatAgent()
    return _agent_instance
