"""Infrastructure exceptions for document store operations.

Store errors extend HeistException so callers can handle every failure of
this package through one base class. ``code`` is the store's status in
lowercase-hyphenated form (``PERMISSION_DENIED`` -> ``permission-denied``).
"""

from heists.domain.exceptions import HeistException


def normalize_status(status: str | None) -> str:
    """``PERMISSION_DENIED`` -> ``permission-denied``; None -> ``unknown``."""
    if not status:
        return "unknown"
    return status.strip().lower().replace("_", "-")


class StoreException(HeistException):
    """A document store request failed."""

    def __init__(
        self,
        message: str,
        code: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            "STORE_ERROR",
            {"code": code, "status_code": status_code},
        )
        self.code = code
        self.status_code = status_code


class DocumentExistsError(StoreException):
    """Raised when a create targets a document ID that already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Document already exists: {path}", "already-exists", 409)
        self.details["path"] = path


class StoreUnavailableError(StoreException):
    """The store could not be reached (connection, DNS, timeout)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Document store unavailable: {reason}", "unavailable")
