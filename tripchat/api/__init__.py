# api/__init__.py
"""
API Endpoints Package

- chat: Conversational interface (/api/chat)
"""

from typing import TYPE_CHECKING

# Lazy imports to avoid circular dependencies
if TYPE_CHECKING:
    from .chat import router as chat_router

__all__ = [
    "chat_router"
]
