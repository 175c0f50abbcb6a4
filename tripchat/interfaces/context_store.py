"""
Context Store - what we remember about each chat between turns

One record per chat_id holding the resolved intent, the search slots and
the question we are waiting on. Redis with a TTL when available,
in-memory otherwise.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Any

import redis.asyncio as redis
from loguru import logger

from ..config import settings
from ..schemas.chat_schemas import IntentType, ExtractedParams, ConversationState


INTENT_TO_DB: Dict[IntentType, str] = {
    IntentType.BOOKING_FLIGHT: "flight",
    IntentType.BOOKING_HOTEL: "hotel",
    IntentType.BOOKING_TRIP: "trip",
    IntentType.INFO_DESTINATION: "info",
    IntentType.INFO_GENERAL: "info",
    IntentType.INFO_ITINERARY: "itinerary",
    IntentType.GENERAL: "general",
}

DB_TO_INTENT: Dict[str, IntentType] = {
    "flight": IntentType.BOOKING_FLIGHT,
    "hotel": IntentType.BOOKING_HOTEL,
    "trip": IntentType.BOOKING_TRIP,
    "info": IntentType.INFO_DESTINATION,
    "itinerary": IntentType.INFO_ITINERARY,
    "general": IntentType.GENERAL,
}

# Slots without a column of their own live in metadata
_METADATA_PARAMS = ("nights", "cabinClass")


@dataclass
class ConversationContext:
    """Stored context for one chat"""
    chat_id: str
    user_id: Optional[str] = None
    intent: Optional[str] = None  # flight | hotel | trip | info | itinerary | general
    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_date: Optional[str] = None
    return_date: Optional[str] = None
    passengers: int = 1
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    rooms: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "ConversationContext":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def to_state(self) -> ConversationState:
        """Rebuild the classifier's view of this context"""
        params = ExtractedParams(
            origin=self.origin,
            destination=self.destination,
            departureDate=self.departure_date,
            returnDate=self.return_date,
            travelers=self.passengers if self.passengers and self.passengers > 1 else None,
            checkIn=self.check_in,
            checkOut=self.check_out,
            **{name: self.metadata.get(name) for name in _METADATA_PARAMS},
        )
        return ConversationState(
            lastIntent=DB_TO_INTENT.get(self.intent or ""),
            pendingQuestion=self.metadata.get("pendingQuestion"),
            params=params,
        )

    @classmethod
    def from_state(cls, chat_id: str, state: ConversationState) -> "ConversationContext":
        params = state.params
        metadata: Dict[str, Any] = {"pendingQuestion": state.pendingQuestion}
        for name in _METADATA_PARAMS:
            if params.get(name):
                metadata[name] = params.get(name)
        return cls(
            chat_id=chat_id,
            intent=INTENT_TO_DB.get(state.lastIntent) if state.lastIntent else None,
            origin=params.origin,
            destination=params.destination,
            departure_date=params.departureDate,
            return_date=params.returnDate,
            passengers=params.travelers or 1,
            check_in=params.checkIn,
            check_out=params.checkOut,
            metadata=metadata,
        )


def merge_context(
    existing: Optional[ConversationContext],
    new: ConversationContext
) -> ConversationContext:
    """
    Merge new context over existing context.
    Truthy new values override; empty ones never clear what we had.
    Metadata is merged key by key.
    """
    if existing is None:
        return new

    return ConversationContext(
        chat_id=existing.chat_id,
        user_id=new.user_id or existing.user_id,
        intent=new.intent or existing.intent,
        origin=new.origin or existing.origin,
        destination=new.destination or existing.destination,
        departure_date=new.departure_date or existing.departure_date,
        return_date=new.return_date or existing.return_date,
        passengers=new.passengers or existing.passengers,
        check_in=new.check_in or existing.check_in,
        check_out=new.check_out or existing.check_out,
        rooms=new.rooms or existing.rooms,
        metadata={**existing.metadata, **new.metadata},
        created_at=existing.created_at,
        updated_at=existing.updated_at,
    )


class ContextStore:
    """
    Stores conversation context per chat

    Uses Redis for fast access and automatic expiration
    Falls back to in-memory storage if Redis unavailable
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

        # Fallback in-memory storage
        self.memory_store: Dict[str, ConversationContext] = {}

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
                logger.info("ContextStore connected to Redis")
            except Exception as e:
                logger.warning(f"Redis connection failed, using in-memory context: {e}")
                self.redis_client = None
        self._initialized = True

    def _get_key(self, chat_id: str) -> str:
        return f"context:{chat_id}"

    async def get_context(self, chat_id: str) -> Optional[ConversationContext]:
        """Stored context for a chat, or None if there is none"""
        await self._ensure_connected()

        if self.redis_client:
            try:
                raw = await self.redis_client.get(self._get_key(chat_id))
                if raw is None:
                    logger.debug(f"No existing context for chat {chat_id}")
                    return None
                return ConversationContext.from_dict(json.loads(raw))
            except Exception as e:
                logger.error(f"Error loading context for {chat_id}: {e}")

        return self.memory_store.get(chat_id)

    async def save_context(self, context: ConversationContext) -> ConversationContext:
        """Insert or replace the context of context.chat_id"""
        await self._ensure_connected()

        now = datetime.now(timezone.utc).isoformat()
        context.created_at = context.created_at or now
        context.updated_at = now
        context.passengers = context.passengers or 1
        context.rooms = context.rooms or 1

        if self.redis_client:
            try:
                await self.redis_client.set(
                    self._get_key(context.chat_id),
                    json.dumps(context.to_dict()),
                    ex=int(self.ttl.total_seconds())
                )
                logger.debug(f"Saved context to Redis: chat={context.chat_id}")
                return context
            except Exception as e:
                logger.error(f"Error saving context to Redis: {e}")

        self.memory_store[context.chat_id] = context
        logger.debug(f"Saved context to memory: chat={context.chat_id}")
        return context

    async def update_context(self, context: ConversationContext) -> ConversationContext:
        """Merge context into what is stored for its chat and save the result"""
        existing = await self.get_context(context.chat_id)
        return await self.save_context(merge_context(existing, context))

    async def delete_context(self, chat_id: str) -> bool:
        """
        Delete the context of a chat

        Returns:
            True if something was deleted
        """
        await self._ensure_connected()

        deleted = self.memory_store.pop(chat_id, None) is not None
        if self.redis_client:
            try:
                deleted = bool(await self.redis_client.delete(self._get_key(chat_id))) or deleted
            except Exception as e:
                logger.error(f"Error deleting context for {chat_id}: {e}")

        logger.info(f"Cleared context: {chat_id}")
        return deleted

    async def get_state(self, chat_id: str) -> Optional[ConversationState]:
        context = await self.get_context(chat_id)
        return context.to_state() if context else None

    async def close(self):
        if self.redis_client:
            await self.redis_client.close()
            logger.info("ContextStore connection closed")


# Singleton instance
_store_instance: Optional[ContextStore] = None


def get_context_store() -> ContextStore:
    """Get singleton instance of ContextStore"""
    global _store_instance
    if _store_instance is None:
        _store_instance = ContextStore()
    return _store_instance
