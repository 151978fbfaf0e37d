"""
Document store interfaces.

The store is a transactional key-document database with change
notification. Documents are plain dicts; every write replaces a whole
document atomically.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

Document = Dict[str, Any]
Snapshot = List[Tuple[uuid.UUID, Document]]
Filters = Optional[Dict[str, Any]]


class _ServerTimestamp:
    """Placeholder the store swaps for its own logical time at commit."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class StoreError(Exception):
    """Transport, timeout or driver failure inside the store."""


class DocumentNotFound(StoreError):
    """The addressed document does not exist."""

    def __init__(self, collection: str, document_id: Any):
        super().__init__(f"{collection}/{document_id} not found")
        self.collection = collection
        self.document_id = document_id


class Subscription(ABC):
    """Owned handle on a live query.

    Iterating yields the full matching snapshot: once immediately, then
    again after every committed change to the collection. ``close()``
    ends the iteration and releases the handle; it is safe to call twice.
    """

    collection: str
    filters: Filters

    def __aiter__(self) -> "Subscription":
        return self

    @abstractmethod
    async def __anext__(self) -> Snapshot:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class DocumentStore(ABC):
    """Key-document store consumed by the services."""

    @abstractmethod
    async def create(self, collection: str, document: Document) -> uuid.UUID:
        """Insert a document and return its store-assigned id."""

    @abstractmethod
    async def get(self, collection: str, document_id: uuid.UUID) -> Document:
        """Read one document; raises DocumentNotFound."""

    @abstractmethod
    async def replace(self, collection: str, document_id: uuid.UUID, document: Document) -> None:
        """Overwrite a whole document; raises DocumentNotFound.

        Immutable fields keep their stored values, and a SERVER_TIMESTAMP
        resolves after every timestamp already in the document.
        """

    @abstractmethod
    async def delete(self, collection: str, document_id: uuid.UUID) -> None:
        """Remove a document; raises DocumentNotFound."""

    @abstractmethod
    async def query(self, collection: str, filters: Filters = None) -> Snapshot:
        """One-shot snapshot of documents matching equality filters."""

    @abstractmethod
    def subscribe(self, collection: str, filters: Filters = None) -> Subscription:
        """Open a live query over ``collection``."""

    @abstractmethod
    async def now(self) -> datetime:
        """Store logical time; never goes backwards."""
