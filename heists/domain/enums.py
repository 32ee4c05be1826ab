"""Domain enumerations for heists."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class HeistFilter(_ValuesMixin, str, Enum):
    """Which slice of heists a live view shows.

    ACTIVE and ASSIGNED are scoped to the signed-in principal (assigned to
    them / created by them); EXPIRED covers every user's heists.
    """

    ACTIVE = "active"
    ASSIGNED = "assigned"
    EXPIRED = "expired"

    @property
    def requires_principal(self) -> bool:
        return self is not HeistFilter.EXPIRED


class FinalStatus(_ValuesMixin, str, Enum):
    """Terminal outcome of an expired heist."""

    SUCCESS = "success"
    FAILURE = "failure"


class WatchStatus(_ValuesMixin, str, Enum):
    """Lifecycle state of a heist watcher."""

    IDLE = "idle"
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"
    NOT_FOUND = "not_found"
