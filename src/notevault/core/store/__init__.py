"""Document store: interfaces, SQL implementation and change notification."""

from .interfaces import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFound,
    DocumentStore,
    Snapshot,
    StoreError,
    Subscription,
)
from .notifier import ChangeNotifier, NotifiedSubscription, RedisChangeNotifier
from .sql_store import COLLECTIONS, LogicalClock, SqlDocumentStore, timestamp_floor

NOTES = "notes"
CATEGORIES = "categories"

__all__ = [
    "SERVER_TIMESTAMP",
    "Document",
    "DocumentNotFound",
    "DocumentStore",
    "Snapshot",
    "StoreError",
    "Subscription",
    "ChangeNotifier",
    "NotifiedSubscription",
    "RedisChangeNotifier",
    "COLLECTIONS",
    "LogicalClock",
    "SqlDocumentStore",
    "timestamp_floor",
    "NOTES",
    "CATEGORIES",
]
