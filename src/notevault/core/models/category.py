# Category model - flat list of names notes can be filed under
from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel


class CategoryRecord(BaseModel):
    """Stored category document. Names are not unique."""

    __tablename__ = "categories"

    document_fields = frozenset({"name"})

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (Index("idx_categories_name", "name"),)

    def __repr__(self) -> str:
        return f"<CategoryRecord(name='{self.name}')>"
