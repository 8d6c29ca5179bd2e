"""
Error taxonomy for the persistence layer.

Every failure raised to callers is a GrowlogError carrying a human-readable
message and a details dict (record kind, record id, action) for logging.
"""

from typing import Any, Dict, Optional


class GrowlogError(Exception):
    """Base class for all errors surfaced by growlog."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class Unauthenticated(GrowlogError):
    """No principal could be resolved for an identity-dependent operation."""

    def __init__(self, message: str = "User is not authenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AlreadyExists(GrowlogError):
    """A create collided with an existing record on its alternate unique key."""


class NotFoundOrForbidden(GrowlogError):
    """
    The record does not exist, or exists but is owned by someone else.

    The two cases are deliberately one error so callers cannot probe for
    records they do not own.
    """

    def __init__(self, kind: str, record_id: str, action: str = "access"):
        super().__init__(
            f"{kind.capitalize()} not found or you do not have permission to {action} it",
            {"kind": kind, "id": record_id, "action": action},
        )


class StoreError(GrowlogError):
    """Base class for failures coming from the document store itself."""


class StoreUnavailable(StoreError):
    """The document store could not be reached or initialized."""


class StoreOperationError(StoreError):
    """A store call failed; wraps the underlying error with operation context."""


class DuplicateKeyError(StoreOperationError):
    """The store rejected a write because of a unique constraint."""


class PhotoAnalysisError(GrowlogError):
    """The photo analysis collaborator could not produce a result."""
