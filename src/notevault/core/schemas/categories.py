"""Category schemas."""

import uuid
from typing import List

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(description="Category name; surrounding whitespace is trimmed")


class CategoryCreatedResponse(BaseModel):
    id: uuid.UUID
    name: str


class CategoryListResponse(BaseModel):
    """Category names. Order is not significant."""

    names: List[str]
