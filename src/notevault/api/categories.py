"""Categories API endpoints."""

from fastapi import APIRouter, Depends

from ..core.identity import IdentityProvider
from ..core.schemas.categories import CategoryCreate, CategoryCreatedResponse, CategoryListResponse
from ..core.services import CategoryService
from ..core.store import DocumentStore
from ..database import get_document_store
from ..middleware.auth import get_identity_provider

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_service(
    store: DocumentStore = Depends(get_document_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> CategoryService:
    return CategoryService(store, identity)


@router.get("/", response_model=CategoryListResponse)
async def list_categories(category_service: CategoryService = Depends(get_category_service)):
    """All category names."""
    return CategoryListResponse(names=sorted(await category_service.list_categories()))


@router.post("/", response_model=CategoryCreatedResponse, status_code=201)
async def add_category(
    request: CategoryCreate,
    category_service: CategoryService = Depends(get_category_service),
):
    """Add a category name."""
    category_id = await category_service.add_category(request.name)
    return CategoryCreatedResponse(id=category_id, name=request.name.strip())
