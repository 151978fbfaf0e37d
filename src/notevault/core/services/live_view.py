"""
Live views: in-memory projections kept current by store subscriptions.

A view owns at most one subscription at a time. Every snapshot the
subscription delivers replaces the whole projection. Views are async
context managers; leaving the block (normally or through an error)
releases the subscription.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Dict, Generic, Optional, Set, TypeVar

from ...config import get_settings
from ..errors import StoreUnavailable
from ..schemas.notes import Note
from ..store import CATEGORIES, NOTES, Document, DocumentStore, Snapshot, StoreError, Subscription
from .note_service import clean_category

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveCollectionView(ABC, Generic[T]):
    """Projection of one collection, filtered by equality on document fields."""

    collection: str

    def __init__(
        self,
        store: DocumentStore,
        filters: Optional[Dict[str, str]] = None,
        retry_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        settings = get_settings()
        self.store = store
        self.retry_seconds = settings.live_view_retry_seconds if retry_seconds is None else retry_seconds
        self.max_retries = settings.live_view_max_retries if max_retries is None else max_retries
        self.last_error: Optional[StoreUnavailable] = None
        self.version = 0

        self._filters = filters
        self._items: Dict[uuid.UUID, T] = {}
        self._subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None
        self._settled: Optional[asyncio.Event] = None
        self._changed = asyncio.Condition()
        self._closed = False

    @abstractmethod
    def _convert(self, document_id: uuid.UUID, document: Document) -> T:
        ...

    @property
    def items(self) -> Dict[uuid.UUID, T]:
        return dict(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscription(self) -> Optional[Subscription]:
        """The live subscription, if one is currently open."""
        return self._subscription

    async def open(self) -> "LiveCollectionView[T]":
        """Subscribe and wait for the first snapshot (or the first failure)."""
        if self._closed:
            raise RuntimeError("Live view already closed")
        await self._start()
        return self

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stop()
        async with self._changed:
            self._changed.notify_all()
        logger.debug(f"Live view on {self.collection} closed")

    async def __aenter__(self) -> "LiveCollectionView[T]":
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _start(self) -> None:
        self._settled = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=f"live-view-{self.collection}")
        await self._settled.wait()

    async def _stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _apply(self, snapshot: Snapshot) -> None:
        items = {document_id: self._convert(document_id, document) for document_id, document in snapshot}
        async with self._changed:
            self._items = items
            self.last_error = None
            self.version += 1
            self._changed.notify_all()

    async def _run(self) -> None:
        failures = 0
        while True:
            subscription: Optional[Subscription] = None
            try:
                subscription = self.store.subscribe(self.collection, self._filters)
                self._subscription = subscription
                async for snapshot in subscription:
                    await self._apply(snapshot)
                    failures = 0
                    self._settled.set()
                return
            except StoreError as e:
                logger.warning(f"Live view on {self.collection} lost its subscription: {e}")
                self.last_error = StoreUnavailable(f"Live updates for {self.collection} interrupted")
            except Exception as e:
                logger.exception(f"Live view on {self.collection} failed: {e}")
                self.last_error = StoreUnavailable(f"Live updates for {self.collection} interrupted")
            finally:
                if subscription is not None:
                    await subscription.close()
                    if self._subscription is subscription:
                        self._subscription = None

            failures += 1
            async with self._changed:
                self.version += 1
                self._changed.notify_all()
            self._settled.set()
            if self.max_retries is not None and failures > self.max_retries:
                logger.error(f"Live view on {self.collection} giving up after {failures} failures")
                return
            await asyncio.sleep(self.retry_seconds)

    async def _refilter(self, filters: Optional[Dict[str, str]]) -> None:
        """Tear down the current subscription and open one with ``filters``."""
        if self._closed:
            raise RuntimeError("Live view already closed")
        await self._stop()
        self._filters = filters
        await self._start()

    async def wait_until(self, predicate: Callable[[Dict[uuid.UUID, T]], bool], timeout: float = 5.0) -> Dict[uuid.UUID, T]:
        """Block until ``predicate(items)`` holds; raises TimeoutError."""
        async def _wait() -> None:
            async with self._changed:
                await self._changed.wait_for(lambda: predicate(self._items))

        await asyncio.wait_for(_wait(), timeout)
        return self.items

    async def updates(self) -> AsyncIterator[Dict[uuid.UUID, T]]:
        """Yield the projection after every snapshot or failure until the view closes."""
        seen = self.version
        if seen:
            yield self.items
        while True:
            async with self._changed:
                await self._changed.wait_for(lambda: self._closed or self.version > seen)
                if self._closed:
                    return
                seen = self.version
                items = dict(self._items)
            yield items


class LiveNoteView(LiveCollectionView[Note]):
    """Live ``id -> Note`` mapping, optionally narrowed to one category."""

    collection = NOTES

    def __init__(self, store: DocumentStore, category: Optional[str] = None, **kwargs):
        category = clean_category(category)
        super().__init__(store, {"category": category} if category else None, **kwargs)
        self._category = category

    def _convert(self, document_id: uuid.UUID, document: Document) -> Note:
        return Note.from_document(document_id, document)

    @property
    def notes(self) -> Dict[uuid.UUID, Note]:
        return self.items

    @property
    def category(self) -> Optional[str]:
        return self._category

    async def set_category(self, category: Optional[str]) -> None:
        """Switch the filter; blank or None shows every note."""
        category = clean_category(category)
        self._category = category
        await self._refilter({"category": category} if category else None)
        logger.info("Live note view filter changed", extra={"category": category})


class LiveCategoryView(LiveCollectionView[str]):
    """Live set of category names."""

    collection = CATEGORIES

    def _convert(self, document_id: uuid.UUID, document: Document) -> str:
        return document["name"]

    @property
    def names(self) -> Set[str]:
        return set(self._items.values())
