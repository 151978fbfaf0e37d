"""
Pydantic schemas for NoteVault.

Shared data shapes (Note, HistoryEntry) plus request/response contracts
for the HTTP API.
"""

from .categories import CategoryCreate, CategoryCreatedResponse, CategoryListResponse
from .common import ErrorResponse, HealthCheckResponse, Outcome
from .notes import (
    HistoryEntry,
    Note,
    NoteCreate,
    NoteCreatedResponse,
    NoteListResponse,
    NoteRevert,
    NoteState,
    NoteUpdate,
)

__all__ = [
    # Notes
    "HistoryEntry",
    "Note",
    "NoteState",
    "NoteCreate",
    "NoteUpdate",
    "NoteRevert",
    "NoteCreatedResponse",
    "NoteListResponse",
    # Categories
    "CategoryCreate",
    "CategoryCreatedResponse",
    "CategoryListResponse",
    # Common
    "ErrorResponse",
    "HealthCheckResponse",
    "Outcome",
]
