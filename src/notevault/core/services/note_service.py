"""Note service implementation."""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from ..errors import InvalidInput, NotFound, StoreUnavailable, Unauthenticated
from ..identity import IdentityProvider, UserIdentity
from ..schemas.notes import HistoryEntry, Note, NoteState
from ..store import NOTES, SERVER_TIMESTAMP, DocumentNotFound, DocumentStore, StoreError
from .history import append_history
from .interfaces import INoteService

logger = logging.getLogger(__name__)

# "category not given" for update_note; None means "uncategorized"
KEEP = object()


@contextmanager
def remap_store_errors(action: str, note_id: Optional[uuid.UUID] = None) -> Iterator[None]:
    """Translate store-layer failures into the service error taxonomy."""
    try:
        yield
    except DocumentNotFound as e:
        logger.warning(f"{action}: note {note_id} not found")
        raise NotFound("Note not found", {"note_id": str(note_id)}) from e
    except StoreError as e:
        logger.error(f"{action}: store unavailable: {e}")
        raise StoreUnavailable(f"Could not {action}: store unavailable") from e


def clean_category(category: Optional[str]) -> Optional[str]:
    """Trim a category name; blank means uncategorized."""
    if category is None:
        return None
    category = category.strip()
    return category or None


class NoteService(INoteService):
    """Create/update/delete/revert notes against the document store.

    Every mutation reads the acting user from ``identity`` when it is
    called and fails with ``Unauthenticated`` before touching the store
    if there is none.
    """

    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    def _require_user(self) -> UserIdentity:
        user = self.identity.current_user()
        if user is None:
            raise Unauthenticated("Sign in to change notes")
        return user

    @staticmethod
    def _clean_content(content: Optional[str]) -> str:
        if content is None or not content.strip():
            raise InvalidInput("Note content cannot be empty")
        return content.strip()

    async def create_note(self, content: str, category: Optional[str] = None) -> uuid.UUID:
        """Create new note."""
        user = self._require_user()
        text = self._clean_content(content)

        document = {
            "content": text,
            "creator_email": user.email,
            "timestamp": SERVER_TIMESTAMP,
            "category": clean_category(category),
            "history": [],
        }
        with remap_store_errors("create note"):
            note_id = await self.store.create(NOTES, document)

        logger.info("Note created", extra={"note_id": str(note_id), "user_id": user.id})
        return note_id

    async def update_note(
        self,
        note_id: uuid.UUID,
        content: str,
        known_state: NoteState,
        category: Any = KEEP,
    ) -> None:
        """Update a note from the caller's last-known state.

        The stored note is not re-read: whatever another client wrote since
        ``known_state`` was observed is overwritten, history included. The
        creator always stays the stored one.
        """
        user = self._require_user()
        text = self._clean_content(content)

        history = append_history(known_state, user)
        document = {
            "content": text,
            "timestamp": SERVER_TIMESTAMP,
            "category": known_state.category if category is KEEP else clean_category(category),
            "history": [entry.model_dump() for entry in history],
        }
        with remap_store_errors("update note", note_id):
            await self.store.replace(NOTES, note_id, document)

        logger.info(
            "Note updated",
            extra={"note_id": str(note_id), "user_id": user.id, "versions": len(history) + 1},
        )

    async def delete_note(self, note_id: uuid.UUID) -> None:
        """Delete note."""
        user = self._require_user()
        with remap_store_errors("delete note", note_id):
            await self.store.delete(NOTES, note_id)
        logger.info("Note deleted", extra={"note_id": str(note_id), "user_id": user.id})

    async def revert_note(self, note_id: uuid.UUID, target: HistoryEntry) -> None:
        """Make ``target``'s content current again.

        Works on a fresh read of the note. The pre-revert state is appended
        to history; ``target`` and every other entry stay where they are.
        """
        user = self._require_user()

        with remap_store_errors("revert note", note_id):
            current = NoteState.from_document(await self.store.get(NOTES, note_id))

        if target not in current.history:
            raise InvalidInput(
                "Revert target is not part of this note's history",
                {"note_id": str(note_id)},
            )

        history = append_history(current, user)
        document = {
            **current.to_document(),
            "content": target.content,
            "timestamp": SERVER_TIMESTAMP,
            "history": [entry.model_dump() for entry in history],
        }
        with remap_store_errors("revert note", note_id):
            await self.store.replace(NOTES, note_id, document)

        logger.info(
            "Note reverted",
            extra={"note_id": str(note_id), "user_id": user.id, "target_timestamp": target.timestamp},
        )

    async def get_note(self, note_id: uuid.UUID) -> Note:
        """Get note by ID."""
        with remap_store_errors("read note", note_id):
            document = await self.store.get(NOTES, note_id)
        return Note.from_document(note_id, document)

    async def list_notes(self, category: Optional[str] = None) -> List[Note]:
        """Snapshot of notes; a blank category means all notes."""
        category = clean_category(category)
        filters = {"category": category} if category else None
        with remap_store_errors("list notes"):
            snapshot = await self.store.query(NOTES, filters)
        return [Note.from_document(note_id, document) for note_id, document in snapshot]
