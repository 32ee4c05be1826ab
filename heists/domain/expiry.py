"""Expiry policy: the single place that decides whether a heist is live.

Two policies exist. ``DeadlineExpiryPolicy`` (default) compares the stored
deadline with "now"; nothing has to flip when a deadline passes.
``ActiveFlagExpiryPolicy`` reads the legacy ``isActive`` flag, which some
other process must keep in sync with real time. A deployment picks one
through ``Settings.heist_expiry_policy``; the query builder and the display
helpers both consult the same policy object so they cannot disagree.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from heists.domain.entities.heist import Heist
from heists.domain.value_objects.core import Timestamp
from heists.domain.value_objects.query import Direction, FieldFilter, OrderBy


class ExpiryPolicy(ABC):
    """Query predicates and in-memory check for live vs expired heists."""

    name: str

    @abstractmethod
    def live_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        """Predicates selecting heists that have not expired."""

    @abstractmethod
    def expired_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        """Predicates selecting expired heists."""

    @abstractmethod
    def live_order(self) -> OrderBy | None:
        """Ordering for live views (None = store default)."""

    @abstractmethod
    def expired_order(self) -> OrderBy | None:
        """Ordering for the expired view (None = store default)."""

    @abstractmethod
    def is_expired(self, heist: Heist, now: datetime) -> bool:
        """Return True if ``heist`` belongs in the expired view at ``now``."""


class DeadlineExpiryPolicy(ExpiryPolicy):
    """Expired means ``deadline <= now``."""

    name = "deadline"

    def live_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        return (FieldFilter("deadline", ">", Timestamp.from_datetime(now)),)

    def expired_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        return (FieldFilter("deadline", "<=", Timestamp.from_datetime(now)),)

    def live_order(self) -> OrderBy:
        return OrderBy("deadline", Direction.ASCENDING)

    def expired_order(self) -> OrderBy:
        return OrderBy("deadline", Direction.DESCENDING)

    def is_expired(self, heist: Heist, now: datetime) -> bool:
        # A heist without a deadline never shows up in deadline queries;
        # treat it as expired so it is never labelled with time remaining.
        if heist.deadline is None:
            return True
        return heist.deadline <= now


class ActiveFlagExpiryPolicy(ExpiryPolicy):
    """Legacy: expired means ``isActive == false``."""

    name = "is_active"

    def live_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        return (FieldFilter("isActive", "==", True),)

    def expired_filters(self, now: datetime) -> tuple[FieldFilter, ...]:
        return (FieldFilter("isActive", "==", False),)

    def live_order(self) -> None:
        return None

    def expired_order(self) -> None:
        return None

    def is_expired(self, heist: Heist, now: datetime) -> bool:
        return heist.is_active is False


DEFAULT_EXPIRY_POLICY: ExpiryPolicy = DeadlineExpiryPolicy()

_POLICIES: dict[str, ExpiryPolicy] = {
    DeadlineExpiryPolicy.name: DEFAULT_EXPIRY_POLICY,
    ActiveFlagExpiryPolicy.name: ActiveFlagExpiryPolicy(),
}


def get_expiry_policy(name: str) -> ExpiryPolicy:
    """Return the policy registered under ``name`` ("deadline" or "is_active")."""
    try:
        return _POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown expiry policy: {name!r}") from None
