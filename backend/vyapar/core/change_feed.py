# FILE: backend/vyapar/core/change_feed.py
# LOCALVYAPAR - CHANGE FEED
# 1. WRITE SIDE: every service write publishes a small event on 'feed:<collection>'.
# 2. READ SIDE: LiveSubscription wraps a Redis pub/sub session with an explicit cancel().
# 3. Without Redis, publishing is skipped with a warning and writes still succeed.

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError
from redis.asyncio import Redis

from .config import settings
from .db import get_redis_client

logger = logging.getLogger(__name__)

FEED_PREFIX = "feed:"

class ChangeEvent(BaseModel):
    collection: str
    doc_id: str
    action: str  # created | updated | deleted
    scope: Dict[str, Any] = Field(default_factory=dict)
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

def channel_for(collection: str) -> str:
    return f"{FEED_PREFIX}{collection}"

def publish_change(collection: str, doc_id: Any, action: str, **scope: Any) -> bool:
    """
    Publishes a change event for one document. Returns False when no Redis client
    is available; callers never treat that as a failure of the write itself.
    """
    client = get_redis_client()
    if client is None:
        logger.debug(f"Skipping change event for {collection}/{doc_id}: Redis not connected.")
        return False

    event = ChangeEvent(collection=collection, doc_id=str(doc_id), action=action, scope={k: str(v) for k, v in scope.items() if v is not None})
    try:
        client.publish(channel_for(collection), event.model_dump_json())
        return True
    except Exception as e:
        logger.error(f"--- [ChangeFeed] Failed to publish {action} for {collection}/{doc_id}: {e} ---")
        return False

class LiveSubscription:
    """
    A cancellable stream of ChangeEvents for a set of collections.

        async with LiveSubscription(["orders"]) as feed:
            async for event in feed:
                ...
    """
    def __init__(self, collections: Iterable[str], redis_url: Optional[str] = None):
        self.channels: List[str] = [channel_for(c) for c in collections]
        self._redis_url = redis_url or settings.REDIS_URL
        self._redis: Optional[Redis] = None
        self._pubsub: Any = None
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def start(self) -> "LiveSubscription":
        self._redis = Redis.from_url(self._redis_url, decode_responses=True)
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(*self.channels)
        logger.info(f"--- [ChangeFeed] Subscribed to {', '.join(self.channels)} ---")
        return self

    async def next_event(self, timeout: float = 1.0) -> Optional[ChangeEvent]:
        """Waits up to 'timeout' seconds for the next event. Returns None on idle or after cancel."""
        if self.cancelled or self._pubsub is None:
            return None
        message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if not message:
            return None
        try:
            return ChangeEvent.model_validate(json.loads(message["data"]))
        except (ValueError, ValidationError) as e:
            logger.warning(f"--- [ChangeFeed] Dropping malformed event on {message.get('channel')}: {e} ---")
            return None

    async def cancel(self):
        if self.cancelled:
            return
        self._cancelled.set()
        if self._pubsub is not None:
            await self._pubsub.unsubscribe()
            await self._pubsub.close()
        if self._redis is not None:
            await self._redis.close()
        logger.info(f"--- [ChangeFeed] Subscription to {', '.join(self.channels)} cancelled ---")

    async def __aenter__(self) -> "LiveSubscription":
        return await self.start()

    async def __aexit__(self, *exc_info):
        await self.cancel()

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        while not self.cancelled:
            event = await self.next_event()
            if event is not None:
                return event
        raise StopAsyncIteration
