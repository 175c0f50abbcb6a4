"""
Conversation Store - message history per chat
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import redis.asyncio as redis
from loguru import logger

from ..config import settings


@dataclass
class Message:
    """One chat turn"""
    chat_id: str
    role: str  # "user" or "assistant"
    content: str
    timestamp: str
    intent: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "Message":
        return cls(**data)


class ConversationStore:
    """
    Stores and retrieves chat history

    Redis list per chat with expiry; in-memory lists when Redis is
    disabled or unreachable
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_hours: Optional[int] = None,
        use_redis: Optional[bool] = None
    ):
        self.redis_url = redis_url or settings.redis_url
        self.ttl = timedelta(hours=ttl_hours or settings.CONTEXT_TTL_HOURS)
        self.use_redis = settings.REDIS_ENABLED if use_redis is None else use_redis
        self.redis_client: Optional[redis.Redis] = None

        self.memory_store: Dict[str, List[Message]] = {}

        self._initialized = False

    async def _ensure_connected(self):
        if self._initialized:
            return

        if self.use_redis:
            try:
                self.redis_client = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                await self.redis_client.ping()
                logger.info("ConversationStore connected to Redis")
            except Exception as e:
                logger.warning(f"Redis connection failed, using in-memory history: {e}")
                self.redis_client = None
        self._initialized = True

    def _get_key(self, chat_id: str) -> str:
        return f"conversation:{chat_id}"

    def _append_memory(self, message: Message):
        self.memory_store.setdefault(message.chat_id, []).append(message)

    async def save_message(
        self,
        chat_id: str,
        role: str,
        content: str,
        intent: Optional[str] = None
    ) -> Message:
        """
        Append a message to a chat's history

        Args:
            chat_id: Chat identifier
            role: "user" or "assistant"
            content: Message text
            intent: Resolved intent of the turn (assistant messages)
        """
        await self._ensure_connected()

        message = Message(
            chat_id=chat_id,
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc).isoformat(),
            intent=intent
        )

        if self.redis_client:
            try:
                key = self._get_key(chat_id)
                await self.redis_client.rpush(key, json.dumps(message.to_dict()))
                await self.redis_client.expire(key, int(self.ttl.total_seconds()))
                return message
            except Exception as e:
                logger.error(f"Error saving message: {e}")

        self._append_memory(message)
        return message

    async def get_history(self, chat_id: str, limit: int = 50) -> List[Dict]:
        """Last `limit` messages of a chat, oldest first"""
        await self._ensure_connected()

        if self.redis_client:
            try:
                messages = await self.redis_client.lrange(self._get_key(chat_id), -limit, -1)
                return [json.loads(m) for m in messages]
            except Exception as e:
                logger.error(f"Error getting history: {e}")

        messages = self.memory_store.get(chat_id, [])
        return [m.to_dict() for m in messages[-limit:]]

    async def clear_chat(self, chat_id: str):
        await self._ensure_connected()

        if self.redis_client:
            try:
                await self.redis_client.delete(self._get_key(chat_id))
            except Exception as e:
                logger.error(f"Error clearing chat: {e}")

        self.memory_store.pop(chat_id, None)
        logger.info(f"Cleared chat history: {chat_id}")

    async def get_chat_metadata(self, chat_id: str) -> Dict:
        """Message count and first/last activity of a chat"""
        history = await self.get_history(chat_id)

        if not history:
            return {"chat_id": chat_id, "message_count": 0, "exists": False}

        return {
            "chat_id": chat_id,
            "message_count": len(history),
            "started_at": history[0].get("timestamp"),
            "last_activity": history[-1].get("timestamp"),
            "exists": True
        }

    async def close(self):
        if self.redis_client:
            await self.redis_client.close()
            logger.info("ConversationStore connection closed")


# Singleton instance
_store_instance: Optional[ConversationStore] = None


def get_conversation_store() -> ConversationStore:
    """Get singleton instance of ConversationStore"""
    global _store_instance
    if _store_instance is None:
        _store_instance = ConversationStore()
    return _store_instance
