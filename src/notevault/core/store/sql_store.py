"""Document store backed by SQLAlchemy async sessions."""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import BaseModel, CategoryRecord, NoteRecord
from .interfaces import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFound,
    DocumentStore,
    Filters,
    Snapshot,
    StoreError,
    Subscription,
)
from .notifier import ChangeNotifier, NotifiedSubscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

TICK = timedelta(microseconds=1)

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    NoteRecord.__tablename__: NoteRecord,
    CategoryRecord.__tablename__: CategoryRecord,
}


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def timestamp_floor(previous: Optional[datetime], document: Document) -> Optional[datetime]:
    """Latest time a replacement's SERVER_TIMESTAMP must land after.

    Covers the replaced document's own timestamp and every timestamp in the
    incoming history, which carries client-supplied values.
    """
    candidates = [previous] if isinstance(previous, datetime) else []
    for entry in document.get("history") or []:
        stamp = entry.get("timestamp") if isinstance(entry, dict) else None
        if isinstance(stamp, datetime):
            candidates.append(stamp)
    return max((_as_utc(c) for c in candidates), default=None)


class LogicalClock:
    """UTC wall clock that never repeats or goes backwards."""

    def __init__(self):
        self._last: Optional[datetime] = None

    def now(self, after: Optional[datetime] = None) -> datetime:
        candidate = datetime.now(timezone.utc)
        for floor in (self._last, after):
            if floor is not None and candidate <= floor:
                candidate = floor + TICK
        self._last = candidate
        return candidate


class SqlDocumentStore(DocumentStore):
    """DocumentStore over the notes/categories tables.

    Operations are serialized and each runs in its own session, so every
    write is an atomic whole-document replace. Subscribers are woken after
    the commit.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Optional[ChangeNotifier] = None,
        timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or ChangeNotifier()
        self.timeout = timeout
        self.clock = LogicalClock()
        self._lock = asyncio.Lock()

    @staticmethod
    def _model(collection: str) -> Type[BaseModel]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _locked() -> T:
            async with self._lock:
                # uncommitted work is rolled back when the session closes
                async with self.session_factory() as session:
                    return await work(session)

        try:
            if self.timeout:
                return await asyncio.wait_for(_locked(), self.timeout)
            return await _locked()
        except StoreError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"Store {operation} timed out after {self.timeout}s")
            raise StoreError(f"{operation} timed out") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Store {operation} failed: {e}")
            raise StoreError(f"{operation} failed: {e}") from e

    def _resolve(self, document: Document, previous: Optional[datetime] = None) -> Document:
        """Swap SERVER_TIMESTAMP placeholders for store time."""
        resolved: Dict[str, Any] = {}
        for key, value in document.items():
            resolved[key] = self.clock.now(after=previous) if value is SERVER_TIMESTAMP else value
        return resolved

    async def create(self, collection: str, document: Document) -> uuid.UUID:
        model = self._model(collection)

        async def work(session: AsyncSession) -> uuid.UUID:
            record = model(id=uuid.uuid4())
            record.apply_document(self._resolve(document))
            session.add(record)
            await session.commit()
            return record.id

        document_id = await self._run(f"create {collection}", work)
        logger.debug(f"Created {collection}/{document_id}")
        await self.notifier.publish(collection)
        return document_id

    async def get(self, collection: str, document_id: uuid.UUID) -> Document:
        model = self._model(collection)

        async def work(session: AsyncSession) -> Document:
            record = await session.get(model, document_id)
            if record is None:
                raise DocumentNotFound(collection, document_id)
            return record.to_document()

        return await self._run(f"get {collection}", work)

    async def replace(self, collection: str, document_id: uuid.UUID, document: Document) -> None:
        model = self._model(collection)

        async def work(session: AsyncSession) -> None:
            record = await session.get(model, document_id)
            if record is None:
                raise DocumentNotFound(collection, document_id)
            kept = {name: getattr(record, name) for name in model.immutable_fields}
            floor = timestamp_floor(getattr(record, "timestamp", None), document)
            record.apply_document({**self._resolve(document, floor), **kept})
            await session.commit()

        await self._run(f"replace {collection}", work)
        logger.debug(f"Replaced {collection}/{document_id}")
        await self.notifier.publish(collection)

    async def delete(self, collection: str, document_id: uuid.UUID) -> None:
        model = self._model(collection)

        async def work(session: AsyncSession) -> None:
            record = await session.get(model, document_id)
            if record is None:
                raise DocumentNotFound(collection, document_id)
            await session.delete(record)
            await session.commit()

        await self._run(f"delete {collection}", work)
        logger.debug(f"Deleted {collection}/{document_id}")
        await self.notifier.publish(collection)

    async def query(self, collection: str, filters: Filters = None) -> Snapshot:
        model = self._model(collection)
        filters = filters or {}
        unknown = set(filters) - model.document_fields
        if unknown:
            raise ValueError(f"Cannot filter {collection} on {sorted(unknown)}")

        async def work(session: AsyncSession) -> Snapshot:
            stmt = select(model)
            for field, value in filters.items():
                stmt = stmt.where(getattr(model, field) == value)
            stmt = stmt.order_by(model.created_at, model.id)
            result = await session.execute(stmt)
            return [(record.id, record.to_document()) for record in result.scalars()]

        return await self._run(f"query {collection}", work)

    def subscribe(self, collection: str, filters: Filters = None) -> Subscription:
        self._model(collection)
        return NotifiedSubscription(collection, filters, self.query, self.notifier)

    async def now(self) -> datetime:
        return self.clock.now()
