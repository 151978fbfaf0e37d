"""
Error taxonomy for NoteVault services.

Every service call either returns its result or raises one of the
``NoteVaultError`` subclasses below. Store-layer exceptions never leave
the service layer; they are remapped at the call site.
"""

from typing import Any, Optional


class NoteVaultError(Exception):
    """Base class for recoverable service errors."""

    error_type = "NoteVaultError"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class Unauthenticated(NoteVaultError):
    """No identity available at mutation time."""

    error_type = "Unauthenticated"
    status_code = 401


class InvalidInput(NoteVaultError):
    """Empty content, blank category name or a foreign history entry."""

    error_type = "InvalidInput"
    status_code = 422


class NotFound(NoteVaultError):
    """Target document absent at write time."""

    error_type = "NotFound"
    status_code = 404


class StoreUnavailable(NoteVaultError):
    """Transport or timeout failure reported by the document store."""

    error_type = "StoreUnavailable"
    status_code = 503
