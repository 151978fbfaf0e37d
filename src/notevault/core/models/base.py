# Base model for database stuff
import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, FrozenSet

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .types import GUID, UTCDateTime


class BaseModel(DeclarativeBase):
    """Common base for all models.

    Every concrete model is a document collection: ``document_fields`` lists
    the columns that make up the stored document, everything else (id, audit
    columns) belongs to the store.
    """

    __abstract__ = True

    document_fields: ClassVar[FrozenSet[str]] = frozenset()
    # set on create, carried over by every replace
    immutable_fields: ClassVar[FrozenSet[str]] = frozenset()

    # using UUIDs everywhere
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(timezone.utc),
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"

    def to_document(self) -> Dict[str, Any]:
        """Return the stored document (without the id)."""
        return {name: getattr(self, name) for name in sorted(self.document_fields)}

    def apply_document(self, document: Dict[str, Any]) -> None:
        """Whole-document replace: every document field is overwritten.

        Fields missing from ``document`` are reset to None so that a
        replace never leaves stale values behind.
        """
        unknown = set(document) - self.document_fields
        if unknown:
            raise ValueError(f"Unknown fields for {self.__tablename__}: {sorted(unknown)}")
        for name in self.document_fields:
            setattr(self, name, document.get(name))
