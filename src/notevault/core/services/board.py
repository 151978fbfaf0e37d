"""
Client-side note board.

``NoteBoard`` is what a UI binds to: the live list of notes, the note
being edited, the note whose history is expanded, and the last error.
Every action returns an ``Outcome`` instead of raising, and the last
error sticks until an action succeeds.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Awaitable, List, Optional, TypeVar

from ..errors import InvalidInput, NoteVaultError
from ..identity import IdentityProvider, UserIdentity
from ..schemas.common import ErrorResponse, Outcome
from ..schemas.notes import HistoryEntry, Note
from ..store import DocumentStore
from .category_service import CategoryService
from .live_view import LiveNoteView
from .note_service import KEEP, NoteService

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_HISTORY = "No history available"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "Invalid Date"
    return value.strftime(TIMESTAMP_FORMAT)


def format_history(history: List[HistoryEntry]) -> List[str]:
    """One display line per version, oldest first."""
    if not history:
        return [NO_HISTORY]
    return [
        f"{entry.content} (modified on {format_timestamp(entry.timestamp)} by {entry.modifier_email})"
        for entry in history
    ]


def describe_note(note: Note) -> List[str]:
    """Metadata lines shown under a note in the list."""
    lines = [
        f"Created by: {note.creator_email}",
        f"Updated on: {format_timestamp(note.timestamp)}",
    ]
    last = note.last_modification
    if last is not None:
        lines.append(f"Last modified by: {last.modifier_email}")
        lines.append(f"Last modified on: {format_timestamp(last.timestamp)}")
    return lines


class NoteBoard:
    """Live notes plus the mutations a signed-in user can run on them."""

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        category: Optional[str] = None,
        **view_options: Any,
    ):
        self.identity = identity
        self.note_service = NoteService(store, identity)
        self.category_service = CategoryService(store, identity)
        self.view = LiveNoteView(store, category, **view_options)

        self.last_error: Optional[ErrorResponse] = None
        self.selected: Optional[Note] = None
        self.history_visible: Optional[uuid.UUID] = None
        self._unsubscribe_identity = identity.subscribe(self._on_identity_change)

    async def __aenter__(self) -> "NoteBoard":
        try:
            await self.view.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        self._unsubscribe_identity()
        await self.view.close()

    @property
    def notes(self) -> List[Note]:
        return list(self.view.notes.values())

    @property
    def can_edit(self) -> bool:
        return self.identity.current_user() is not None

    @property
    def editing(self) -> bool:
        return self.selected is not None

    def _on_identity_change(self, user: Optional[UserIdentity]) -> None:
        if user is None:
            self.selected = None

    async def _attempt(self, action: str, call: Awaitable[T]) -> Outcome[T]:
        try:
            value = await call
        except NoteVaultError as e:
            self.last_error = ErrorResponse(error=e.error_type, message=e.message, details=e.details)
            logger.warning(f"{action} failed: {e.message}", extra={"error_type": e.error_type})
            return Outcome.failure(self.last_error)
        self.last_error = None
        return Outcome.success(value)

    def edit(self, note_id: uuid.UUID) -> Optional[Note]:
        """Select a note from the live view; its state is what the next save overwrites."""
        self.selected = self.view.notes.get(note_id)
        return self.selected

    def cancel_edit(self) -> None:
        self.selected = None

    async def save(self, content: str, category: Any = KEEP) -> Outcome:
        """Create a note, or update the selected one."""
        if self.selected is None:
            create_category = None if category is KEEP else category
            outcome = await self._attempt("Save note", self.note_service.create_note(content, create_category))
        else:
            selected = self.selected
            outcome = await self._attempt(
                "Save note",
                self.note_service.update_note(selected.id, content, selected, category),
            )
        if outcome.ok:
            self.selected = None
        return outcome

    async def delete(self, note_id: uuid.UUID) -> Outcome:
        outcome = await self._attempt("Delete note", self.note_service.delete_note(note_id))
        if outcome.ok and self.selected is not None and self.selected.id == note_id:
            self.selected = None
        return outcome

    async def revert(self, note_id: uuid.UUID, entry: HistoryEntry) -> Outcome:
        return await self._attempt("Revert note", self.note_service.revert_note(note_id, entry))

    async def revert_to_index(self, note_id: uuid.UUID, index: int) -> Outcome:
        """Revert to the ``index``-th displayed history entry."""
        note = self.view.notes.get(note_id)
        if note is None or not 0 <= index < len(note.history):
            return await self._attempt("Revert note", self._reject("No such version to revert to"))
        return await self.revert(note_id, note.history[index])

    @staticmethod
    async def _reject(message: str) -> None:
        raise InvalidInput(message)

    async def show_category(self, category: Optional[str]) -> Outcome:
        return await self._attempt("Filter notes", self._refilter(category))

    async def _refilter(self, category: Optional[str]) -> None:
        await self.view.set_category(category)
        if self.view.last_error is not None:
            raise self.view.last_error

    async def add_category(self, name: str) -> Outcome[uuid.UUID]:
        return await self._attempt("Add category", self.category_service.add_category(name))

    def toggle_history(self, note_id: uuid.UUID) -> None:
        self.history_visible = None if self.history_visible == note_id else note_id

    def history_lines(self, note_id: uuid.UUID) -> List[str]:
        note = self.view.notes.get(note_id)
        return format_history(note.history if note else [])
