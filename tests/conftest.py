from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from tripchat.config import settings
from tripchat.llm import classifier as classifier_module


TODAY = date(2026, 3, 10)


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch):
    """No external providers unless a test wires one in explicitly"""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(settings, "CLASSIFIER_MODE", "auto")
    monkeypatch.setattr(settings, "OLLAMA_ENABLED", False)
    monkeypatch.setattr(settings, "AMADEUS_CLIENT_ID", "")
    monkeypatch.setattr(settings, "AMADEUS_CLIENT_SECRET", "")
    monkeypatch.setattr(settings, "TAVILY_API_KEY", "")
    monkeypatch.setattr(settings, "BRAVE_SEARCH_API_KEY", "")
    monkeypatch.setattr(settings, "REDIS_ENABLED", False)
    monkeypatch.setattr(settings, "PRICE_CONVERSION_RATE", 85.0)
    monkeypatch.setattr(classifier_module, "_llm_classifier", None)


@pytest.fixture
def today():
    return TODAY


def make_openai_client(*contents):
    """Fake OpenAI client whose chat completions return the given texts in order"""
    client = MagicMock()
    client.chat.completions.create.side_effect = [
        SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])
        for text in contents
    ]
    return client


@pytest.fixture
def openai_client_factory():
    return make_openai_client
