# Database connection setup
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings
from .core.models.base import BaseModel
from .core.redis_client import RedisClient
from .core.store import ChangeNotifier, RedisChangeNotifier, SqlDocumentStore

# Get settings
settings = get_settings()

# Create async engine using settings
engine = create_async_engine(settings.database_url, echo=settings.database_echo)

# Session factory
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

_document_store: Optional[SqlDocumentStore] = None


async def get_db_session():
    """Get database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables(bind: Optional[AsyncEngine] = None):
    """Create all tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)


def build_notifier(app_settings: Settings) -> ChangeNotifier:
    """Pick the change notifier configured for this process."""
    if app_settings.notifications_backend == "redis":
        return RedisChangeNotifier(
            RedisClient(app_settings.redis_url, app_settings.redis_channel),
            retry_seconds=app_settings.live_view_retry_seconds,
        )
    return ChangeNotifier()


def get_document_store() -> SqlDocumentStore:
    """Process-wide document store (FastAPI dependency)."""
    global _document_store
    if _document_store is None:
        _document_store = SqlDocumentStore(
            AsyncSessionLocal,
            notifier=build_notifier(settings),
            timeout=settings.store_timeout_seconds,
        )
    return _document_store
