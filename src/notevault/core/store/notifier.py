"""
Change notification fan-out.

A notifier tells open subscriptions that a collection changed; the
subscriptions then re-read their snapshot. ``ChangeNotifier`` covers a
single process, ``RedisChangeNotifier`` relays events between processes
sharing one database.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Awaitable, Callable, Dict, Optional, Set

from ...config import get_settings
from ..redis_client import RedisClient
from .interfaces import Filters, Snapshot, Subscription

logger = logging.getLogger(__name__)

_CLOSED = object()


class ChangeNotifier:
    """In-process broadcaster: one asyncio queue per listener."""

    def __init__(self):
        self._listeners: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    def listen(self, collection: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners[collection].add(queue)
        return queue

    def unlisten(self, collection: str, queue: asyncio.Queue) -> None:
        self._listeners[collection].discard(queue)

    def listener_count(self, collection: str) -> int:
        return len(self._listeners[collection])

    def dispatch(self, collection: str) -> None:
        """Wake every local listener of ``collection``."""
        for queue in list(self._listeners[collection]):
            queue.put_nowait(collection)

    async def publish(self, collection: str) -> None:
        self.dispatch(collection)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


class RedisChangeNotifier(ChangeNotifier):
    """Notifier that also publishes on, and relays from, a Redis channel.

    Events carry the publishing process' origin id so a process never
    wakes its own listeners twice. If Redis is unreachable the notifier
    keeps working in-process.
    """

    def __init__(self, client: RedisClient, retry_seconds: Optional[float] = None):
        super().__init__()
        self.client = client
        self.origin = uuid.uuid4().hex
        self.retry_seconds = (
            get_settings().live_view_retry_seconds if retry_seconds is None else retry_seconds
        )
        self._relay_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        try:
            await self.client.connect()
        except Exception as e:
            logger.warning(f"Redis unavailable, change events stay in-process: {e}")
            return
        self._relay_task = asyncio.create_task(self._relay(), name="notevault-redis-relay")

    async def stop(self) -> None:
        if self._relay_task is not None:
            self._relay_task.cancel()
            try:
                await self._relay_task
            except asyncio.CancelledError:
                pass
            self._relay_task = None
        await self.client.disconnect()

    async def publish(self, collection: str) -> None:
        self.dispatch(collection)
        if self.client.connected:
            await self.client.publish({"collection": collection, "origin": self.origin})

    async def _relay(self) -> None:
        """Relay remote events until cancelled, resubscribing after any failure."""
        while True:
            try:
                if not self.client.connected:
                    await self.client.connect()
                async for event in self.client.messages():
                    if event.get("origin") == self.origin:
                        continue
                    collection = event.get("collection")
                    if collection:
                        self.dispatch(collection)
                logger.warning("Redis change stream ended, resubscribing")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Redis change relay failed, retrying in {self.retry_seconds}s: {e}")
            await asyncio.sleep(self.retry_seconds)


class NotifiedSubscription(Subscription):
    """Subscription that re-runs a query whenever the notifier fires.

    The listener is registered before the first read, so a change
    committed while a snapshot is being read is never missed. Bursts of
    events are coalesced into one re-read.
    """

    def __init__(
        self,
        collection: str,
        filters: Filters,
        fetch: Callable[[str, Filters], Awaitable[Snapshot]],
        notifier: ChangeNotifier,
    ):
        self.collection = collection
        self.filters = dict(filters) if filters else None
        self._fetch = fetch
        self._notifier = notifier
        self._queue = notifier.listen(collection)
        self._initial = True
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __anext__(self) -> Snapshot:
        if self._closed:
            raise StopAsyncIteration
        if self._initial:
            self._initial = False
        else:
            event = await self._queue.get()
            if event is _CLOSED:
                raise StopAsyncIteration
            while not self._queue.empty():
                if self._queue.get_nowait() is _CLOSED:
                    raise StopAsyncIteration
        return await self._fetch(self.collection, self.filters)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._notifier.unlisten(self.collection, self._queue)
        self._queue.put_nowait(_CLOSED)
