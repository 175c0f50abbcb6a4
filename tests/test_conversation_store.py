import pytest

from tripchat.interfaces.conversation_store import ConversationStore


@pytest.mark.asyncio
async def test_history_in_order_with_limit():
    store = ConversationStore(use_redis=False)
    await store.save_message("c1", "user", "flights to goa")
    await store.save_message("c1", "assistant", "Where will you be traveling from?", intent="BOOKING_FLIGHT")
    await store.save_message("c1", "user", "delhi")

    history = await store.get_history("c1")
    assert [m["content"] for m in history] == [
        "flights to goa", "Where will you be traveling from?", "delhi"
    ]
    assert history[1]["intent"] == "BOOKING_FLIGHT"

    last_two = await store.get_history("c1", limit=2)
    assert [m["role"] for m in last_two] == ["assistant", "user"]


@pytest.mark.asyncio
async def test_metadata_and_clear():
    store = ConversationStore(use_redis=False)
    assert (await store.get_chat_metadata("c1"))["exists"] is False

    await store.save_message("c1", "user", "hi")
    metadata = await store.get_chat_metadata("c1")
    assert metadata["message_count"] == 1
    assert metadata["exists"] is True

    await store.clear_chat("c1")
    assert await store.get_history("c1") == []
