"""Human-readable deadline and status text for heist cards.

Dates are rendered like "Feb 22, 12:00 PM" in the given timezone (UTC by
default). Whether a heist shows "Time Remaining" or "Final Status" is
decided by the same ``ExpiryPolicy`` the queries use.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, tzinfo

from heists.domain.entities.heist import Heist
from heists.domain.expiry import DEFAULT_EXPIRY_POLICY, ExpiryPolicy

_DAY_SECONDS = 86_400

TIME_REMAINING_LABEL = "Time Remaining"
FINAL_STATUS_LABEL = "Final Status"


def format_date(dt: datetime, tz: tzinfo = UTC) -> str:
    """Return e.g. "Feb 22, 12:00 PM"."""
    local = dt.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%b} {local.day}, {hour}:{local:%M} {meridiem}"


def format_deadline(deadline: datetime, now: datetime, tz: tzinfo = UTC) -> str:
    """Describe an upcoming deadline relative to ``now``.

    Days are rounded up, so anything due within the next 24 hours reads
    "Tomorrow"; "Today" only covers the day after the deadline passed.
    """
    days = math.ceil((deadline - now).total_seconds() / _DAY_SECONDS)
    formatted = format_date(deadline, tz)
    if days == 0:
        return f"Today, {formatted}"
    if days == 1:
        return f"Tomorrow, {formatted}"
    if 0 < days <= 7:
        return f"{days}d left - {formatted}"
    if days < 0:
        return f"Overdue - {formatted}"
    return formatted


def format_expired_date(deadline: datetime, now: datetime, tz: tzinfo = UTC) -> str:
    """Describe how long ago a deadline passed (days rounded down)."""
    days = math.floor((now - deadline).total_seconds() / _DAY_SECONDS)
    formatted = format_date(deadline, tz)
    if days == 0:
        return f"Expired today - {formatted}"
    if days == 1:
        return f"Expired yesterday - {formatted}"
    if days <= 7:
        return f"Expired {days}d ago - {formatted}"
    if days <= 30:
        return f"Expired {days // 7}w ago - {formatted}"
    return f"Expired {formatted}"


def heist_status_label(
    heist: Heist,
    now: datetime,
    policy: ExpiryPolicy = DEFAULT_EXPIRY_POLICY,
    tz: tzinfo = UTC,
) -> tuple[str, str]:
    """Return the (label, value) pair shown on a heist card."""
    if not policy.is_expired(heist, now):
        if heist.deadline is None:
            return TIME_REMAINING_LABEL, "No deadline"
        return TIME_REMAINING_LABEL, format_deadline(heist.deadline, now, tz)
    if heist.final_status is None:
        return FINAL_STATUS_LABEL, "Pending"
    return FINAL_STATUS_LABEL, heist.final_status.value.capitalize()
