"""
Database models for NoteVault.

Each model backs one document collection of the store:
    - NoteRecord: note content, creator, store timestamp, category and history
    - CategoryRecord: category names notes can be filed under
"""

from .base import BaseModel
from .category import CategoryRecord
from .note import NoteRecord

__all__ = [
    "BaseModel",
    "NoteRecord",
    "CategoryRecord",
]
