"""
Service layer interfaces and implementations.
"""

from .interfaces import ICategoryService, IHealthService, INoteService

from .board import NoteBoard, describe_note, format_history
from .category_service import CategoryService
from .health_service import HealthService
from .history import append_history, record_history_entry
from .live_view import LiveCategoryView, LiveCollectionView, LiveNoteView
from .note_service import KEEP, NoteService

__all__ = [
    # Interfaces
    "INoteService",
    "ICategoryService",
    "IHealthService",

    # Implementations
    "NoteService",
    "CategoryService",
    "HealthService",
    "LiveCollectionView",
    "LiveNoteView",
    "LiveCategoryView",
    "NoteBoard",

    # Helpers
    "KEEP",
    "record_history_entry",
    "append_history",
    "format_history",
    "describe_note",
]
