"""Query predicate value objects shared by the expiry policy and query builder."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

FILTER_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">="})


class Direction(str, Enum):
    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


@dataclass(frozen=True)
class FieldFilter:
    """``field op value`` against a stored document (camelCase field path)."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: Direction = Direction.ASCENDING
