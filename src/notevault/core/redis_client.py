"""Redis client for cross-process change notification."""

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import redis.asyncio as redis

from ..config import get_settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Thin wrapper over redis.asyncio for pub/sub."""

    def __init__(self, url: Optional[str] = None, channel: Optional[str] = None):
        self.settings = get_settings()
        self.url = url or self.settings.redis_url
        self.channel = channel or self.settings.redis_channel
        self.redis: Optional[redis.Redis] = None
        self._pubsub = None

    @property
    def connected(self) -> bool:
        return self.redis is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self.redis is not None:
            return
        try:
            self.redis = redis.from_url(
                self.url,
                max_connections=self.settings.redis_max_connections,
                decode_responses=True,
            )
            # Test connection
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.redis = None
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def ping(self) -> bool:
        if not self.redis:
            return False
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.error(f"Redis PING error: {e}")
            return False

    async def publish(self, payload: Dict[str, Any]) -> bool:
        """Publish a JSON payload on the change channel."""
        if not self.redis:
            return False
        try:
            await self.redis.publish(self.channel, json.dumps(payload))
            return True
        except Exception as e:
            logger.error(f"Redis PUBLISH error on {self.channel}: {e}")
            return False

    async def messages(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded payloads published on the change channel."""
        if not self.redis:
            return
        if self._pubsub is not None:
            await self._pubsub.aclose()
        self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(self.channel)
        async for message in self._pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                yield json.loads(message["data"])
            except (TypeError, ValueError):
                logger.warning(f"Ignoring malformed change event: {message.get('data')!r}")

