"""Firestore REST value encoding."""

from datetime import UTC, datetime

import pytest

from heists.domain.value_objects.core import SERVER_TIMESTAMP, Timestamp
from heists.infrastructure.firebase._rest_encoding import (
    decode_fields,
    encode_fields,
    split_server_timestamps,
)


def test_encode_scalar_types() -> None:
    assert encode_fields(
        {"s": "x", "b": True, "i": 3, "f": 1.5, "n": None}
    ) == {
        "s": {"stringValue": "x"},
        "b": {"booleanValue": True},
        "i": {"integerValue": "3"},
        "f": {"doubleValue": 1.5},
        "n": {"nullValue": None},
    }


def test_encode_timestamps() -> None:
    dt = datetime(2026, 2, 22, 12, 0, tzinfo=UTC)
    assert encode_fields({"a": dt, "b": Timestamp(seconds=0, nanos=5)}) == {
        "a": {"timestampValue": "2026-02-22T12:00:00Z"},
        "b": {"timestampValue": "1970-01-01T00:00:00.000000005Z"},
    }


def test_encode_nested() -> None:
    assert encode_fields({"m": {"k": [1, "two"]}}) == {
        "m": {
            "mapValue": {
                "fields": {
                    "k": {
                        "arrayValue": {
                            "values": [{"integerValue": "1"}, {"stringValue": "two"}]
                        }
                    }
                }
            }
        }
    }


def test_server_timestamp_cannot_be_encoded_as_value() -> None:
    with pytest.raises(TypeError, match="transform"):
        encode_fields({"createdAt": SERVER_TIMESTAMP})


def test_split_server_timestamps() -> None:
    plain, paths = split_server_timestamps({"title": "x", "createdAt": SERVER_TIMESTAMP})
    assert plain == {"title": "x"}
    assert paths == ["createdAt"]


def test_decode_fields() -> None:
    decoded = decode_fields(
        {
            "title": {"stringValue": "Vault"},
            "deadline": {"timestampValue": "2026-02-22T12:00:00.000001Z"},
            "count": {"integerValue": "7"},
            "finalStatus": {"nullValue": None},
            "tags": {"arrayValue": {}},
        }
    )
    assert decoded == {
        "title": "Vault",
        "deadline": Timestamp.from_rfc3339("2026-02-22T12:00:00.000001Z"),
        "count": 7,
        "finalStatus": None,
        "tags": [],
    }


def test_decode_empty_fields() -> None:
    assert decode_fields(None) == {}
