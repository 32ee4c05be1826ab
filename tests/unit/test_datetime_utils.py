"""UTC helpers used for deadlines."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from heists.shared.utils.datetime import ensure_utc, hours_after


def test_hours_after_naive_start_is_treated_as_utc() -> None:
    assert hours_after(datetime(2026, 2, 20, 12, 0), 48) == datetime(
        2026, 2, 22, 12, 0, tzinfo=UTC
    )


def test_hours_after_converts_offset_to_utc() -> None:
    start = datetime(2026, 2, 20, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    result = hours_after(start, 1)
    assert result == datetime(2026, 2, 20, 13, 0, tzinfo=UTC)
    assert result.tzinfo is UTC


def test_hours_after_rejects_non_datetime() -> None:
    with pytest.raises(TypeError, match="start must be a datetime"):
        hours_after(None, 1)  # type: ignore[arg-type]


def test_ensure_utc_passes_none_through() -> None:
    assert ensure_utc(None) is None
