from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tripchat.agents.chat_agent import ChatAgent, get_chat_agent
from tripchat.interfaces.amadeus_client import AmadeusClient
from tripchat.interfaces.context_store import ContextStore
from tripchat.interfaces.conversation_store import ConversationStore
from tripchat.interfaces.web_search import WebSearch, TavilyClient, BraveSearchClient
from tripchat.llm.responder import LLMResponder
from tripchat.main import app


@pytest.fixture
def agent():
    return ChatAgent(
        amadeus=AmadeusClient(client_id="", client_secret=""),
        web_search=WebSearch(tavily=TavilyClient(api_key=""), brave=BraveSearchClient(api_key="")),
        responder=LLMResponder(),
        context_store=ContextStore(use_redis=False),
        conversation_store=ConversationStore(use_redis=False),
        classifier_mode="pattern",
    )


@pytest.fixture
def client(agent):
    app.dependency_overrides[get_chat_agent] = lambda: agent
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["providers"]["amadeus"] is False
    assert body["timestamp"].endswith("+00:00")


def test_chat_info(client):
    body = client.get("/api/chat").json()
    assert "POST /api/chat" in body["endpoints"]


@pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}])
def test_chat_requires_message(client, payload):
    response = client.post("/api/chat", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_chat_turn_and_context(client):
    response = client.post("/api/chat", json={"message": "flights to goa"})
    assert response.status_code == 200
    body = response.json()
    assert body["intent"] == "BOOKING_FLIGHT"
    assert body["needsMoreInfo"] is True
    assert body["pendingQuestion"] == "Where will you be traveling from?"
    chat_id = body["conversationId"]

    context = client.get(f"/api/chat/{chat_id}/context").json()
    assert context["chatId"] == chat_id
    assert context["context"]["destination"] == "goa"
    assert context["state"]["lastIntent"] == "BOOKING_FLIGHT"

    history = client.get(f"/api/chat/{chat_id}/history", params={"limit": 1}).json()
    assert history["count"] == 1
    assert history["messages"][0]["role"] == "assistant"

    assert client.delete(f"/api/chat/{chat_id}/context").json() == {"chatId": chat_id, "deleted": True}
    assert client.get(f"/api/chat/{chat_id}/context").status_code == 404


def test_chat_failure_is_500(client, agent):
    agent.process_message = AsyncMock(side_effect=RuntimeError("boom"))
    response = client.post("/api/chat", json={"message": "hi"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process chat message"}


def test_classify_endpoint(client):
    response = client.post("/api/chat/classify", json={"message": "hotels in jaipur for 3 nights"})
    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "BOOKING_HOTEL"
    assert body["params"]["destination"] == "jaipur"
    assert body["params"]["nights"] == 3
    assert body["missingParams"] == ["checkIn"]
    assert body["followUpQuestion"] == "When would you like to check in?"


def test_classify_rejects_empty_message(client):
    response = client.post("/api/chat/classify", json={"message": ""})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request"}


@pytest.mark.parametrize("path", ["/api/chat", "/api/chat/classify"])
def test_overlong_message_is_rejected(client, path):
    response = client.post(path, json={"message": "x" * 2001})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is too long (max 2000 characters)"}


def test_message_at_limit_is_accepted(client):
    response = client.post("/api/chat/classify", json={"message": "x" * 2000})
    assert response.status_code == 200
