"""Domain value objects."""

from heists.domain.value_objects.core import SERVER_TIMESTAMP, ServerTimestamp, Timestamp
from heists.domain.value_objects.query import Direction, FieldFilter, OrderBy

__all__ = [
    "SERVER_TIMESTAMP",
    "ServerTimestamp",
    "Timestamp",
    "Direction",
    "FieldFilter",
    "OrderBy",
]
