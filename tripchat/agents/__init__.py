# agents/__init__.py
"""
Agents Package

- ChatAgent: LangGraph workflow that classifies a message and runs one handler
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .chat_agent import ChatAgent, get_chat_agent

__all__ = [
    "ChatAgent",
    "get_chat_agent"
]
