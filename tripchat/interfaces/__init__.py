# interfaces/__init__.py
"""
Interfaces Package

Contains external services and stores:
- amadeus_client: Flight and hotel search
- web_search: Destination information (Tavily, Brave)
- context_store: Per-chat search context
- conversation_store: Message history
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .amadeus_client import AmadeusClient, get_amadeus_client
    from .web_search import WebSearch, TavilyClient, BraveSearchClient, get_web_search
    from .context_store import ContextStore, ConversationContext, merge_context, get_context_store
    from .conversation_store import ConversationStore, Message, get_conversation_store

__all__ = [
    "AmadeusClient",
    "get_amadeus_client",
    "WebSearch",
    "TavilyClient",
    "BraveSearchClient",
    "get_web_search",
    "ContextStore",
    "ConversationContext",
    "merge_context",
    "get_context_store",
    "ConversationStore",
    "Message",
    "get_conversation_store"
]
