"""
Error types raised inside the chat service.

Handlers catch these, log them and fall back to canned results; only the
API layer turns anything into an HTTP status.
"""

from typing import Optional


class TripChatError(Exception):
    def __init__(self, message: str, user_message: Optional[str] = None):
        self.message = message
        self.user_message = user_message or "Something went wrong. Please try again."
        super().__init__(self.message)


class ClassificationError(TripChatError):
    """The LLM returned something that is not a usable classification"""


class ProviderNotConfiguredError(TripChatError):
    """An external provider is missing credentials"""

    def __init__(self, provider: str):
        super().__init__(f"{provider} is not configured")
        self.provider = provider


class SearchProviderError(TripChatError):
    """An external search call failed"""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code
