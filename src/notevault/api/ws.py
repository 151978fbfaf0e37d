"""WebSocket endpoint streaming live note snapshots."""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..core.services import LiveNoteView
from ..core.store import DocumentStore
from ..database import get_document_store

router = APIRouter(prefix="/ws", tags=["live"])
logger = logging.getLogger(__name__)


def _snapshot_message(view: LiveNoteView) -> Dict[str, Any]:
    notes = [note.model_dump(mode="json") for note in view.notes.values()]
    message: Dict[str, Any] = {"type": "snapshot", "category": view.category, "notes": notes}
    if view.last_error is not None:
        message["error"] = {"error": view.last_error.error_type, "message": view.last_error.message}
    return message


async def _push_snapshots(websocket: WebSocket, view: LiveNoteView) -> None:
    async for _ in view.updates():
        await websocket.send_json(_snapshot_message(view))


async def _read_commands(websocket: WebSocket, view: LiveNoteView) -> None:
    """Clients switch the filter with ``{"category": "..."}``."""
    while True:
        command = await websocket.receive_json()
        if not isinstance(command, dict) or "category" not in command:
            continue
        category = command["category"]
        if category is not None and not isinstance(category, str):
            logger.warning(f"Ignoring non-string category filter: {category!r}")
            continue
        await view.set_category(category)


@router.websocket("/notes")
async def live_notes(
    websocket: WebSocket,
    category: Optional[str] = None,
    store: DocumentStore = Depends(get_document_store),
):
    """
    Live note list.

    Sends the full matching note set on connect and again after every
    change. One subscription per connection, released on disconnect.
    """
    await websocket.accept()
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    logger.info(f"WebSocket connected: {client}", extra={"category": category})

    async with LiveNoteView(store, category) as view:
        tasks = [
            asyncio.create_task(_push_snapshots(websocket, view)),
            asyncio.create_task(_read_commands(websocket, view)),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.error(f"WebSocket error for {client}: {exc}")
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    logger.info(f"WebSocket disconnected: {client}")
