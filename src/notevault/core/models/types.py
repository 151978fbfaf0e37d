"""Custom SQLAlchemy types for NoteVault models with cross-DB support."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import DateTime, String, Text, TypeDecorator


class GUID(TypeDecorator):
    """
    Platform-independent GUID/UUID type.

    - Uses PostgreSQL UUID type when available
    - Falls back to CHAR(36) storing hex string form on other DBs (e.g., SQLite)
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID as PG_UUID

            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that always comes back in UTC.

    SQLite drops tzinfo on the way in, so naive values read back are
    tagged as UTC; aware values are converted to UTC before binding.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _encode_timestamps(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, dict):
        return {k: _encode_timestamps(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode_timestamps(v) for v in value]
    return value


class HistoryListType(TypeDecorator):
    """
    Store a note's history (list of entry dicts) as a JSON array:

    - On PostgreSQL: JSONB
    - On SQLite (and others): JSON text in a TEXT column

    ``timestamp`` values go in as ISO-8601 strings and come back as aware
    UTC datetimes, so the column round-trips the same dicts it was given.
    """

    cache_ok = True
    impl = Text  # placeholder, real impl decided per-dialect

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB

            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Optional[List[dict]], dialect):
        if value is None:
            return None
        encoded = _encode_timestamps([dict(entry) for entry in value])
        if dialect.name == "postgresql":
            return encoded
        return json.dumps(encoded)

    def process_result_value(self, value, dialect) -> Optional[List[dict]]:
        if value is None:
            return None
        entries = value if isinstance(value, list) else json.loads(value)
        decoded = []
        for entry in entries:
            entry = dict(entry)
            if isinstance(entry.get("timestamp"), str):
                entry["timestamp"] = datetime.fromisoformat(entry["timestamp"])
            decoded.append(entry)
        return decoded
