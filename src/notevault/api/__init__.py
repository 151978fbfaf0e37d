"""API routers for NoteVault."""

from .categories import router as categories_router
from .health import router as health_router
from .notes import router as notes_router
from .ws import router as ws_router

__all__ = ["notes_router", "categories_router", "ws_router", "health_router"]
