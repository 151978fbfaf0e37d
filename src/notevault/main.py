# Main application entry point
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import categories_router, health_router, notes_router, ws_router
from .config import get_settings
from .core.errors import NoteVaultError
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.schemas.common import ErrorResponse
from .database import create_tables, get_document_store

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting NoteVault application",
        extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
    )

    # Allow tests to skip touching the real DB
    if os.getenv("NOTEVAULT_SKIP_LIFESPAN_DB") == "1":
        logger.info("Skipping DB table creation due to NOTEVAULT_SKIP_LIFESPAN_DB=1")
    else:
        try:
            await create_tables()
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error("Failed to create database tables", exc_info=e)
            raise

    store = get_document_store()
    await store.notifier.start()
    logger.info("Change notifications started", extra={"backend": settings.notifications_backend})

    yield

    logger.info("Shutting down NoteVault application")
    await store.notifier.stop()


app = FastAPI(
    title="NoteVault",
    description="Versioned notes with live multi-client views",
    version=__version__,
    lifespan=lifespan,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NoteVaultError)
async def notevault_error_handler(request: Request, exc: NoteVaultError) -> JSONResponse:
    """Service errors become ErrorResponse bodies with a matching status."""
    body = ErrorResponse(error=exc.error_type, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# Include routers
app.include_router(notes_router, prefix="/api")
app.include_router(categories_router, prefix="/api")
app.include_router(ws_router, prefix="/api")
app.include_router(health_router, prefix="/api")


# Root endpoint
@app.get("/")
async def root():
    return {"message": "NoteVault API"}


@app.get("/api/")
async def api_root():
    return {
        "message": "NoteVault API",
        "version": __version__,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
        "endpoints": {
            "notes": "/api/notes/",
            "categories": "/api/categories/",
            "live_notes": "/api/ws/notes",
            "health": "/api/health/",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("notevault.main:app", host=settings.host, port=settings.port, reload=settings.reload)
