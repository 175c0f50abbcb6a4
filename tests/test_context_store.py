import pytest

from tripchat.interfaces.context_store import ContextStore, ConversationContext, merge_context
from tripchat.schemas.chat_schemas import IntentType, ConversationState, ExtractedParams


@pytest.fixture
def store():
    return ContextStore(use_redis=False)


def test_merge_context_truthy_values_override():
    existing = ConversationContext(chat_id="c1", intent="flight", origin="delhi",
                                   destination="goa", metadata={"pendingQuestion": "q", "nights": 3})
    new = ConversationContext(chat_id="c1", destination="jaipur", metadata={"pendingQuestion": None})

    merged = merge_context(existing, new)

    assert merged.intent == "flight"
    assert merged.origin == "delhi"
    assert merged.destination == "jaipur"
    assert merged.metadata == {"pendingQuestion": None, "nights": 3}


def test_merge_context_without_existing():
    new = ConversationContext(chat_id="c1", origin="delhi")
    assert merge_context(None, new) is new


def test_state_round_trip_keeps_slots():
    state = ConversationState(
        lastIntent=IntentType.BOOKING_HOTEL,
        pendingQuestion="When would you like to check in?",
        params=ExtractedParams(destination="goa", travelers=2, nights=4),
    )
    context = ConversationContext.from_state("c1", state)

    assert context.intent == "hotel"
    assert context.passengers == 2
    assert context.metadata["nights"] == 4
    assert context.to_state() == state


def test_intent_mapping_back():
    assert ConversationContext(chat_id="c", intent="trip").to_state().lastIntent == IntentType.BOOKING_TRIP
    assert ConversationContext(chat_id="c", intent="info").to_state().lastIntent == IntentType.INFO_DESTINATION
    assert ConversationContext(chat_id="c", intent=None).to_state().lastIntent is None


def test_info_general_is_stored_as_info():
    context = ConversationContext.from_state("c", ConversationState(lastIntent=IntentType.INFO_GENERAL))
    assert context.intent == "info"


@pytest.mark.asyncio
async def test_save_and_get(store):
    saved = await store.save_context(ConversationContext(chat_id="c1", origin="delhi", passengers=0))
    assert saved.created_at is not None
    assert saved.updated_at.endswith("+00:00")
    assert saved.passengers == 1

    loaded = await store.get_context("c1")
    assert loaded.origin == "delhi"
    assert await store.get_context("missing") is None


@pytest.mark.asyncio
async def test_update_merges_with_stored(store):
    await store.save_context(ConversationContext(chat_id="c1", intent="flight", origin="delhi"))
    await store.update_context(ConversationContext(chat_id="c1", destination="goa"))

    state = await store.get_state("c1")
    assert state.lastIntent == IntentType.BOOKING_FLIGHT
    assert state.params.origin == "delhi"
    assert state.params.destination == "goa"


@pytest.mark.asyncio
async def test_delete(store):
    await store.save_context(ConversationContext(chat_id="c1"))
    assert await store.delete_context("c1") is True
    assert await store.get_context("c1") is None
    assert await store.delete_context("c1") is False
