"""Notes API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from ..core.identity import IdentityProvider
from ..core.schemas.notes import (
    HistoryEntry,
    Note,
    NoteCreate,
    NoteCreatedResponse,
    NoteListResponse,
    NoteRevert,
    NoteUpdate,
)
from ..core.services import KEEP, NoteService
from ..core.store import DocumentStore
from ..database import get_document_store
from ..middleware.auth import get_identity_provider

router = APIRouter(prefix="/notes", tags=["notes"])


def get_note_service(
    store: DocumentStore = Depends(get_document_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> NoteService:
    return NoteService(store, identity)


@router.post("/", response_model=NoteCreatedResponse, status_code=201)
async def create_note(request: NoteCreate, note_service: NoteService = Depends(get_note_service)):
    """Create a new note."""
    note_id = await note_service.create_note(request.content, request.category)
    return NoteCreatedResponse(id=note_id)


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    category: Optional[str] = Query(None, description="Only notes in this category; blank for all"),
    note_service: NoteService = Depends(get_note_service),
):
    """Snapshot of notes, optionally in one category."""
    notes = await note_service.list_notes(category)
    return NoteListResponse(items=notes, total=len(notes), category=category or None)


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: UUID, note_service: NoteService = Depends(get_note_service)):
    """Get a specific note."""
    return await note_service.get_note(note_id)


@router.get("/{note_id}/history", response_model=List[HistoryEntry])
async def get_note_history(note_id: UUID, note_service: NoteService = Depends(get_note_service)):
    """Prior versions of a note, oldest first."""
    note = await note_service.get_note(note_id)
    return note.history


@router.put("/{note_id}", status_code=204)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    note_service: NoteService = Depends(get_note_service),
):
    """Update a note from the client's last-known state (last write wins)."""
    category = request.category if "category" in request.model_fields_set else KEEP
    await note_service.update_note(note_id, request.content, request.known_state, category)
    return Response(status_code=204)


@router.post("/{note_id}/revert", status_code=204)
async def revert_note(
    note_id: UUID,
    request: NoteRevert,
    note_service: NoteService = Depends(get_note_service),
):
    """Restore the content of one of the note's history entries."""
    await note_service.revert_note(note_id, request.target)
    return Response(status_code=204)


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: UUID, note_service: NoteService = Depends(get_note_service)):
    """Delete a note and all of its history."""
    await note_service.delete_note(note_id)
    return Response(status_code=204)
