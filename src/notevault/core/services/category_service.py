"""Category registry."""

import logging
import uuid
from typing import List, Optional

from ..errors import InvalidInput, StoreUnavailable, Unauthenticated
from ..identity import IdentityProvider
from ..store import CATEGORIES, DocumentStore, StoreError
from .interfaces import ICategoryService
from .live_view import LiveCategoryView

logger = logging.getLogger(__name__)


class CategoryService(ICategoryService):
    """Add and list category names. Duplicates are stored as given."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    async def add_category(self, name: Optional[str]) -> uuid.UUID:
        user = self.identity.current_user()
        if user is None:
            raise Unauthenticated("Sign in to add categories")
        if name is None or not name.strip():
            raise InvalidInput("Category name cannot be empty")

        try:
            category_id = await self.store.create(CATEGORIES, {"name": name.strip()})
        except StoreError as e:
            logger.error(f"add category: store unavailable: {e}")
            raise StoreUnavailable("Could not add category: store unavailable") from e

        logger.info("Category added", extra={"category": name.strip(), "user_id": user.id})
        return category_id

    async def list_categories(self) -> List[str]:
        """Distinct category names, in no particular order."""
        try:
            snapshot = await self.store.query(CATEGORIES)
        except StoreError as e:
            logger.error(f"list categories: store unavailable: {e}")
            raise StoreUnavailable("Could not list categories: store unavailable") from e
        return list({document["name"] for _, document in snapshot})

    def watch_categories(self, **kwargs) -> LiveCategoryView:
        """Live category names; use as ``async with service.watch_categories() as view``."""
        return LiveCategoryView(self.store, **kwargs)
