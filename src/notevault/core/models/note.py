# Note model - current content plus append-only history
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel
from .types import HistoryListType, UTCDateTime


class NoteRecord(BaseModel):
    """Stored note document."""

    __tablename__ = "notes"

    document_fields = frozenset({"content", "creator_email", "timestamp", "category", "history"})
    immutable_fields = frozenset({"creator_email"})

    content: Mapped[str] = mapped_column(Text, nullable=False)
    creator_email: Mapped[str] = mapped_column(String(320), nullable=False)

    # store-assigned logical time of the latest content change
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    # by-name reference into the categories collection; no foreign key
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # oldest first, only ever appended to
    history: Mapped[List[dict]] = mapped_column(HistoryListType, nullable=False, default=list)

    __table_args__ = (
        Index("idx_notes_category", "category"),
        Index("idx_notes_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        # Truncate long content so log lines stay readable
        content = self.content or ""
        truncated = content if len(content) <= 30 else (content[:30] + "...")
        return f"<NoteRecord(content='{truncated}', versions={len(self.history or []) + 1})>"
