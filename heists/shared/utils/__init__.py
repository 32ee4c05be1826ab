"""Shared utilities: datetime and id generators."""

from heists.shared.utils.datetime import ensure_utc, hours_after, utc_now
from heists.shared.utils.generators import generate_document_id

__all__ = [
    "generate_document_id",
    "utc_now",
    "ensure_utc",
    "hours_after",
]
