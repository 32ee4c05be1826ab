"""Encode/decode Python values to/from Firestore REST API 'fields' format.

Timestamps decode to ``Timestamp`` (nanosecond precision kept); both
``Timestamp`` and ``datetime`` encode to ``timestampValue``. The
``SERVER_TIMESTAMP`` sentinel cannot be encoded as a value: split it off
with ``split_server_timestamps`` and send it as a field transform.
"""

import base64
from datetime import datetime
from typing import Any

from heists.domain.value_objects.core import ServerTimestamp, Timestamp


def _encode_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, Timestamp):
        return {"timestampValue": v.to_rfc3339()}
    if isinstance(v, datetime):
        return {"timestampValue": Timestamp.from_datetime(v).to_rfc3339()}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [_encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: _encode_value(x) for k, x in v.items()}}}
    if isinstance(v, ServerTimestamp):
        raise TypeError("SERVER_TIMESTAMP must be sent as a transform, not a value")
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def split_server_timestamps(data: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Return (data without sentinels, top-level field paths that were sentinels)."""
    plain = {k: v for k, v in data.items() if not isinstance(v, ServerTimestamp)}
    paths = [k for k, v in data.items() if isinstance(v, ServerTimestamp)]
    return plain, paths


def encode_fields(data: dict[str, Any]) -> dict:
    """Convert a Python dict to a Firestore REST ``fields`` map."""
    return {k: _encode_value(v) for k, v in data.items()}


def _decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return Timestamp.from_rfc3339(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "referenceValue" in obj:
        return obj["referenceValue"]
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [_decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: _decode_value(x) for k, x in fields.items()}
    return None


def decode_fields(fields: dict | None) -> dict:
    """Convert a Firestore REST ``fields`` map to a Python dict."""
    if not fields:
        return {}
    return {k: _decode_value(v) for k, v in fields.items()}
