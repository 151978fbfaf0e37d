"""
Service interfaces for NoteVault.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..schemas.common import HealthCheckResponse
from ..schemas.notes import HistoryEntry, Note, NoteState


class INoteService(ABC):
    """Versioned note mutations and reads."""

    @abstractmethod
    async def create_note(self, content: str, category: Optional[str] = None) -> uuid.UUID:
        """Create a note with empty history."""
        pass

    @abstractmethod
    async def update_note(
        self, note_id: uuid.UUID, content: str, known_state: NoteState, category: Any = ...
    ) -> None:
        """Overwrite a note from the caller's last-known state."""
        pass

    @abstractmethod
    async def delete_note(self, note_id: uuid.UUID) -> None:
        """Delete a note and its history."""
        pass

    @abstractmethod
    async def revert_note(self, note_id: uuid.UUID, target: HistoryEntry) -> None:
        """Restore the content of a history entry."""
        pass

    @abstractmethod
    async def get_note(self, note_id: uuid.UUID) -> Note:
        """Read one note."""
        pass

    @abstractmethod
    async def list_notes(self, category: Optional[str] = None) -> List[Note]:
        """Snapshot of notes, optionally in one category."""
        pass


class ICategoryService(ABC):
    """Category registry."""

    @abstractmethod
    async def add_category(self, name: str) -> uuid.UUID:
        """Add a category name."""
        pass

    @abstractmethod
    async def list_categories(self) -> List[str]:
        """Current category names."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass
