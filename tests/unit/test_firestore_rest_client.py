"""Firestore REST client and document store against httpx.MockTransport."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from heists.application.queries import build_query
from heists.domain.entities.heist import HeistConverter, NewHeist
from heists.domain.value_objects.core import Timestamp
from heists.infrastructure.exceptions import (
    DocumentExistsError,
    StoreException,
    StoreUnavailableError,
)
from heists.infrastructure.firebase._rest_client import FirestoreRESTClient
from heists.infrastructure.firebase.store import FirestoreDocumentStore
from tests.fakes import NOW

PREFIX = "projects/demo/databases/(default)/documents"


class StaticTokenSource:
    def __init__(self, token: str | None = "user-id-token") -> None:
        self.token = token

    async def get_token(self) -> str | None:
        return self.token


def _rest_doc(doc_id: str, title: str) -> dict:
    return {
        "name": f"{PREFIX}/heists/{doc_id}",
        "fields": {
            "title": {"stringValue": title},
            "deadline": {"timestampValue": "2026-02-22T12:00:00Z"},
        },
        "updateTime": "2026-02-20T12:00:00.000001Z",
    }


def _client(handler, token_source=None) -> FirestoreRESTClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirestoreRESTClient(
        "demo", token_source or StaticTokenSource(), http_client=http
    )


class TestRunQuery:
    async def test_structured_query_and_results(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                json=[
                    {"document": _rest_doc("h1", "First"), "readTime": "x"},
                    {"document": _rest_doc("h2", "Second"), "readTime": "x"},
                    {"readTime": "x"},
                ],
            )

        client = _client(handler)
        docs = await client.run_query(build_query("active", "alice", NOW))

        [request] = captured
        assert request.method == "POST"
        assert request.url.path.endswith("/documents:runQuery")
        assert request.headers["Authorization"] == "Bearer user-id-token"
        assert json.loads(request.content) == {
            "structuredQuery": {
                "from": [{"collectionId": "heists"}],
                "where": {
                    "compositeFilter": {
                        "op": "AND",
                        "filters": [
                            {
                                "fieldFilter": {
                                    "field": {"fieldPath": "assignedTo"},
                                    "op": "EQUAL",
                                    "value": {"stringValue": "alice"},
                                }
                            },
                            {
                                "fieldFilter": {
                                    "field": {"fieldPath": "deadline"},
                                    "op": "GREATER_THAN",
                                    "value": {"timestampValue": "2026-02-20T12:00:00Z"},
                                }
                            },
                        ],
                    }
                },
                "orderBy": [{"field": {"fieldPath": "deadline"}, "direction": "ASCENDING"}],
                "limit": 50,
            }
        }
        assert [d.id for d in docs] == ["h1", "h2"]
        assert docs[0].to_dict()["deadline"] == Timestamp.from_datetime(
            datetime(2026, 2, 22, 12, 0, tzinfo=UTC)
        )

    async def test_single_filter_is_not_composite(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=[{"readTime": "x"}])

        docs = await _client(handler).run_query(build_query("expired", None, NOW))

        where = bodies[0]["structuredQuery"]["where"]
        assert where["fieldFilter"]["op"] == "LESS_THAN_OR_EQUAL"
        assert bodies[0]["structuredQuery"]["orderBy"][0]["direction"] == "DESCENDING"
        assert docs == []

    async def test_no_token_sends_no_authorization(self) -> None:
        headers: list[httpx.Headers] = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers)
            return httpx.Response(200, json=[])

        await _client(handler, StaticTokenSource(None)).run_query(
            build_query("expired", None, NOW)
        )
        assert "Authorization" not in headers[0]


class TestErrors:
    async def test_permission_denied_maps_to_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                json={
                    "error": {
                        "code": 403,
                        "message": "Missing or insufficient permissions.",
                        "status": "PERMISSION_DENIED",
                    }
                },
            )

        with pytest.raises(StoreException) as exc_info:
            await _client(handler).run_query(build_query("expired", None, NOW))
        assert exc_info.value.code == "permission-denied"
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Missing or insufficient permissions."

    async def test_transport_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await _client(handler).run_query(build_query("expired", None, NOW))
        assert exc_info.value.code == "unavailable"

    async def test_create_conflict(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS"}})

        with pytest.raises(DocumentExistsError):
            await _client(handler).collection("heists").document("h1").create({"a": 1})


class TestDocuments:
    async def test_missing_document_is_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})

        assert await _client(handler).collection("heists").document("nope").get() is None

    async def test_get_document(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path.endswith("/documents/heists/h1")
            return httpx.Response(200, json=_rest_doc("h1", "First"))

        doc = await _client(handler).collection("heists").document("h1").get()
        assert doc is not None
        assert doc.id == "h1"
        assert doc.exists
        assert doc.to_dict()["title"] == "First"

    async def test_stream_follows_page_tokens(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("pageToken") == "p2":
                return httpx.Response(200, json={"documents": [_rest_doc("h2", "B")]})
            return httpx.Response(
                200, json={"documents": [_rest_doc("h1", "A")], "nextPageToken": "p2"}
            )

        docs = [d async for d in _client(handler).collection("heists").stream()]
        assert [d.id for d in docs] == ["h1", "h2"]


class TestCommitWrite:
    async def test_create_uses_server_time_transform(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/documents:commit")
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"writeResults": [{}]})

        store = FirestoreDocumentStore(_client(handler))
        fields = HeistConverter.to_wire(
            NewHeist(
                title="Vault job",
                description="Crack the vault",
                created_by="alice",
                created_by_codename="SwiftCrimsonFalcon",
                assigned_to="bob",
                assigned_to_codename="SilentAzureRaven",
                deadline=datetime(2026, 2, 22, 12, 0, tzinfo=UTC),
            )
        )

        heist_id = await store.create_document("heists", fields)

        [write] = bodies[0]["writes"]
        assert write["update"]["name"] == f"{PREFIX}/heists/{heist_id}"
        assert "createdAt" not in write["update"]["fields"]
        assert write["update"]["fields"]["deadline"] == {
            "timestampValue": "2026-02-22T12:00:00Z"
        }
        assert write["update"]["fields"]["finalStatus"] == {"nullValue": None}
        assert write["updateTransforms"] == [
            {"fieldPath": "createdAt", "setToServerValue": "REQUEST_TIME"}
        ]
        assert write["currentDocument"] == {"exists": False}

    async def test_set_overwrites_without_precondition(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        store = FirestoreDocumentStore(_client(handler))
        await store.set_document("users", "u1", {"id": "u1", "codename": "SlyGoldenKey"})

        [write] = bodies[0]["writes"]
        assert write["update"]["name"] == f"{PREFIX}/users/u1"
        assert "currentDocument" not in write
        assert "updateTransforms" not in write
