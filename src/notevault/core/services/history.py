"""History recording."""

from ..identity import UserIdentity
from ..schemas.notes import HistoryEntry, NoteState


def record_history_entry(prior: NoteState, acting_user: UserIdentity) -> HistoryEntry:
    """Snapshot ``prior`` as the entry a content-changing mutation appends.

    ``prior`` must be the note as it was *before* the mutation: the entry
    keeps the superseded content and the time it became current, and
    names ``acting_user`` as the one who replaced it.
    """
    return HistoryEntry(
        content=prior.content,
        timestamp=prior.timestamp,
        modifier_email=acting_user.email,
    )


def append_history(prior: NoteState, acting_user: UserIdentity) -> list[HistoryEntry]:
    """Return ``prior.history`` with one new entry for ``prior`` appended."""
    return [*prior.history, record_history_entry(prior, acting_user)]
