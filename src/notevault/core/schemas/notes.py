"""
Note schemas.

``Note`` and ``HistoryEntry`` are the data shapes shared by every
operation; the request/response classes below are the API contracts for
the note endpoints.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """Snapshot of a note immediately before a superseding mutation."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Note content before the mutation")
    timestamp: datetime = Field(description="When that content became current")
    modifier_email: str = Field(description="User who performed the superseding mutation")


class NoteState(BaseModel):
    """A note's document, as last seen by a client."""

    content: str
    creator_email: str
    timestamp: datetime
    category: Optional[str] = None
    history: List[HistoryEntry] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "NoteState":
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "creator_email": self.creator_email,
            "timestamp": self.timestamp,
            "category": self.category,
            "history": [entry.model_dump() for entry in self.history],
        }


class Note(NoteState):
    """A stored note: its document plus the store-assigned identity."""

    id: uuid.UUID

    @classmethod
    def from_document(cls, note_id: uuid.UUID, document: Dict[str, Any]) -> "Note":
        return cls.model_validate({**document, "id": note_id})

    @property
    def last_modification(self) -> Optional[HistoryEntry]:
        """Most recent history entry, if the note was ever changed."""
        return self.history[-1] if self.history else None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "content": "Buy oat milk",
                "creator_email": "ada@example.com",
                "timestamp": "2025-09-13T10:30:00Z",
                "category": "Errands",
                "history": [
                    {
                        "content": "Buy milk",
                        "timestamp": "2025-09-13T10:00:00Z",
                        "modifier_email": "grace@example.com",
                    }
                ],
            }
        }
    )


class NoteCreate(BaseModel):
    """Note creation request."""

    content: str = Field(description="Note text; surrounding whitespace is trimmed")
    category: Optional[str] = Field(default=None, description="Category name")


class NoteUpdate(BaseModel):
    """Note update request.

    ``known_state`` is the note as the client last saw it; the update is
    written over the stored note without re-reading it. Leaving
    ``category`` out keeps the known category, sending null clears it.
    """

    content: str = Field(description="New note text")
    known_state: NoteState = Field(description="Client's last-known note document")
    category: Optional[str] = Field(default=None, description="Category name")


class NoteRevert(BaseModel):
    """Revert request: a history entry previously shown to the user."""

    target: HistoryEntry


class NoteCreatedResponse(BaseModel):
    id: uuid.UUID


class NoteListResponse(BaseModel):
    """Snapshot of the notes matching a category filter."""

    items: List[Note]
    total: int
    category: Optional[str] = None
