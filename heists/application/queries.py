"""Heist query construction per view filter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from heists.domain.enums import HeistFilter
from heists.domain.expiry import (
    DEFAULT_EXPIRY_POLICY,
    ActiveFlagExpiryPolicy,
    ExpiryPolicy,
)
from heists.domain.value_objects.query import FieldFilter, OrderBy
from heists.core.constants import COLLECTION_HEISTS

DEFAULT_QUERY_LIMIT = 50


@dataclass(frozen=True)
class QuerySpec:
    """Store-agnostic query: AND of ``filters``, optional order, result cap."""

    collection: str
    filters: tuple[FieldFilter, ...]
    order_by: OrderBy | None = None
    limit: int | None = None


def build_query(
    heist_filter: HeistFilter | str,
    principal_id: str | None,
    now: datetime,
    policy: ExpiryPolicy = DEFAULT_EXPIRY_POLICY,
    limit: int | None = DEFAULT_QUERY_LIMIT,
) -> QuerySpec:
    """Build the query for one heist view.

    - active: assigned to ``principal_id`` and still live, soonest first
    - assigned: created by ``principal_id`` and still live, soonest first
    - expired: every user's expired heists, most recent deadline first

    Raises:
        ValueError: Unknown filter, or a principal-scoped filter without a principal.
    """
    heist_filter = HeistFilter(heist_filter)
    if heist_filter.requires_principal and not principal_id:
        raise ValueError(f"Filter {heist_filter.value!r} requires a principal")

    if heist_filter is HeistFilter.ACTIVE:
        filters = (FieldFilter("assignedTo", "==", principal_id), *policy.live_filters(now))
        order = policy.live_order()
    elif heist_filter is HeistFilter.ASSIGNED:
        filters = (FieldFilter("createdBy", "==", principal_id), *policy.live_filters(now))
        order = policy.live_order()
    else:
        filters = policy.expired_filters(now)
        order = policy.expired_order()

    return QuerySpec(
        collection=COLLECTION_HEISTS,
        filters=tuple(filters),
        order_by=order,
        limit=limit,
    )


def build_legacy_query(
    heist_filter: HeistFilter | str,
    principal_id: str | None,
    now: datetime,
) -> QuerySpec:
    """Flag-based variant kept for deployments still writing ``isActive``.

    Matches on ``isActive`` instead of comparing deadlines, with no ordering
    and no result cap, as those deployments always queried.
    """
    return build_query(
        heist_filter,
        principal_id,
        now,
        policy=ActiveFlagExpiryPolicy(),
        limit=None,
    )
