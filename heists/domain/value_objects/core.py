"""Store-side time values.

Firestore keeps instants as (seconds, nanos) pairs and serialises them as
RFC 3339 strings with up to nanosecond precision. ``Timestamp`` mirrors that
representation so the heist converter has an explicit wire type to turn
into ``datetime``. ``SERVER_TIMESTAMP`` asks the store to fill a field from
its own clock on write.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True, order=True)
class Timestamp:
    """An instant as whole seconds since the epoch plus nanoseconds (0..999_999_999)."""

    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < 1_000_000_000:
            raise ValueError("Timestamp nanos must be in [0, 999999999]")

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Timestamp":
        """Build from a datetime; naive values are taken as UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        delta = dt - _EPOCH
        seconds = delta.days * 86_400 + delta.seconds
        return cls(seconds=seconds, nanos=delta.microseconds * 1000)

    @classmethod
    def now(cls) -> "Timestamp":
        return cls.from_datetime(datetime.now(UTC))

    @classmethod
    def from_rfc3339(cls, value: str) -> "Timestamp":
        """Parse ``2026-02-22T12:00:00.123456789Z`` style strings."""
        match = _RFC3339_RE.match(value)
        if not match:
            raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")
        tz = match.group("tz")
        base = datetime.fromisoformat(
            match.group("base") + ("+00:00" if tz == "Z" else tz)
        )
        frac = match.group("frac") or ""
        nanos = int(frac.ljust(9, "0")) if frac else 0
        return cls(seconds=cls.from_datetime(base).seconds, nanos=nanos)

    def to_datetime(self) -> datetime:
        """Return a UTC-aware datetime (sub-microsecond precision is truncated)."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def to_rfc3339(self) -> str:
        base = (_EPOCH + timedelta(seconds=self.seconds)).strftime("%Y-%m-%dT%H:%M:%S")
        if self.nanos:
            return f"{base}.{self.nanos:09d}Z"
        return f"{base}Z"


class ServerTimestamp:
    """Sentinel type: the store replaces the field with its commit time."""

    _instance: "ServerTimestamp | None" = None

    def __new__(cls) -> "ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()
