"""Heist entity and its conversion to and from stored documents.

Stored documents use camelCase keys and store-side ``Timestamp`` values;
the in-memory ``Heist`` uses snake_case attributes and UTC datetimes. The
document key, not the payload, is the source of ``Heist.id``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from heists.domain.enums import FinalStatus
from heists.domain.exceptions import ValidationException
from heists.domain.value_objects.core import SERVER_TIMESTAMP, Timestamp
from heists.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewHeist:
    """Fields of a heist that has not been written yet (no id, no createdAt)."""

    title: str
    description: str
    created_by: str
    created_by_codename: str
    assigned_to: str
    assigned_to_codename: str
    deadline: datetime


@dataclass(frozen=True)
class Heist:
    """A task assigned by one principal to another, due at ``deadline``.

    ``deadline`` and ``created_at`` are None when the stored document lacks
    them (``createdAt`` is filled by the store and may not be there yet on
    the first snapshot). ``is_active`` is only set for documents written by
    the legacy flag-based flow.
    """

    id: str
    title: str
    description: str
    created_by: str
    created_by_codename: str
    assigned_to: str
    assigned_to_codename: str
    deadline: datetime | None
    final_status: FinalStatus | None
    created_at: datetime | None
    is_active: bool | None = None

    def validate(self, now: datetime) -> None:
        """Check the final-status rule. Raises ValidationException if broken.

        A final status may only be set once the deadline has passed.
        """
        if self.final_status is None or self.deadline is None:
            return
        if self.deadline > now:
            raise ValidationException(
                "Final status cannot be set before the deadline", field="final_status"
            )


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, Timestamp):
        return value.to_datetime()
    if isinstance(value, datetime):
        return ensure_utc(value)
    return None


def _to_final_status(value: Any) -> FinalStatus | None:
    if value is None:
        return None
    try:
        return FinalStatus(value)
    except ValueError:
        logger.warning("Ignoring unknown heist finalStatus %r", value)
        return None


class HeistConverter:
    """Two-way mapping between ``Heist`` and stored document fields."""

    @staticmethod
    def from_wire(
        doc_id: str, fields: dict[str, Any], now: datetime | None = None
    ) -> Heist:
        """Build a Heist from a document key and its decoded fields.

        Missing timestamps become None rather than raising. Any ``id`` key
        inside ``fields`` is ignored. With ``now``, a record whose final
        status was set before its deadline is logged and still returned.
        """
        is_active = fields.get("isActive")
        heist = Heist(
            id=doc_id,
            title=fields.get("title") or "",
            description=fields.get("description") or "",
            created_by=fields.get("createdBy") or "",
            created_by_codename=fields.get("createdByCodename") or "",
            assigned_to=fields.get("assignedTo") or "",
            assigned_to_codename=fields.get("assignedToCodename") or "",
            deadline=_to_datetime(fields.get("deadline")),
            final_status=_to_final_status(fields.get("finalStatus")),
            created_at=_to_datetime(fields.get("createdAt")),
            is_active=is_active if isinstance(is_active, bool) else None,
        )
        if now is not None:
            try:
                heist.validate(now)
            except ValidationException as exc:
                logger.warning("Heist %s breaks the final-status rule: %s", doc_id, exc.message)
        return heist

    @staticmethod
    def to_wire(record: Heist | NewHeist) -> dict[str, Any]:
        """Return document fields for ``record``.

        ``createdAt`` is always the server-timestamp sentinel so the store's
        clock, not the caller's, orders records.
        """
        final_status = getattr(record, "final_status", None)
        fields: dict[str, Any] = {
            "title": record.title,
            "description": record.description,
            "createdBy": record.created_by,
            "createdByCodename": record.created_by_codename,
            "assignedTo": record.assigned_to,
            "assignedToCodename": record.assigned_to_codename,
            "deadline": (
                Timestamp.from_datetime(record.deadline)
                if record.deadline is not None
                else None
            ),
            "finalStatus": final_status.value if final_status else None,
            "createdAt": SERVER_TIMESTAMP,
        }
        is_active = getattr(record, "is_active", None)
        if is_active is not None:
            fields["isActive"] = is_active
        return fields
