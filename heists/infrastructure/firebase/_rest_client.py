"""Thin Firestore REST API client (no firebase-admin, no grpc).

Firestore REST v1 over httpx.AsyncClient. Requests carry a bearer token
from a pluggable token source: a service account (google-auth) for admin
scripts, or the signed-in user's Firebase ID token for the client itself.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from heists.domain.value_objects.query import FieldFilter, OrderBy
from heists.infrastructure.exceptions import (
    DocumentExistsError,
    StoreException,
    StoreUnavailableError,
    normalize_status,
)
from heists.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_fields,
    encode_fields,
    split_server_timestamps,
)
from heists.shared.utils.generators import generate_document_id

if TYPE_CHECKING:
    from heists.application.queries import QuerySpec

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


class TokenSource(Protocol):
    async def get_token(self) -> str | None:
        """Return a bearer token, or None to send the request unauthenticated."""


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class ServiceAccountTokenSource:
    """OAuth2 access tokens for a service account; refreshed in a worker thread."""

    def __init__(self, credentials) -> None:
        self._credentials = credentials

    @classmethod
    def from_info(cls, key_dict: dict) -> ServiceAccountTokenSource:
        return cls(_get_credentials(key_dict))

    async def get_token(self) -> str | None:
        return await asyncio.to_thread(_get_access_token, self._credentials)


def _raise_for_response(resp: httpx.Response, path: str) -> None:
    """Raise StoreException carrying the REST error status as ``code``."""
    status = None
    message = f"Firestore request failed with HTTP {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        status = payload["error"].get("status")
        message = payload["error"].get("message") or message
    if resp.status_code == 409 and status in (None, "ALREADY_EXISTS"):
        raise DocumentExistsError(path)
    raise StoreException(message, normalize_status(status), resp.status_code)


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: dict | None = None,
) -> Any:
    """Perform an HTTP request against Firestore REST. A GET 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST", "DELETE"):
        raise ValueError(f"Unsupported method: {method!r}")
    try:
        resp = await client.request(method, url, headers=headers, json=body, params=params)
    except httpx.TransportError as e:
        raise StoreUnavailableError(str(e) or type(e).__name__) from e
    if resp.status_code == 404 and method in ("GET", "DELETE"):
        return None
    if resp.status_code not in (200, 204):
        _raise_for_response(resp, url.removeprefix(f"{_BASE}/"))
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data). ``exists`` is False for a missing document."""

    def __init__(
        self,
        id_: str,
        data: dict,
        *,
        exists: bool = True,
        update_time: str | None = None,
    ):
        self.id = id_
        self._data = data
        self.exists = exists
        self.update_time = update_time

    def to_dict(self) -> dict:
        return self._data

    @classmethod
    def from_rest(cls, doc: dict) -> DocumentSnapshot:
        name = doc.get("name", "")
        return cls(
            name.split("/")[-1] if name else "",
            decode_fields(doc.get("fields")),
            update_time=doc.get("updateTime"),
        )

    @classmethod
    def missing(cls, id_: str) -> DocumentSnapshot:
        return cls(id_, {}, exists=False)

    def __repr__(self) -> str:
        return f"DocumentSnapshot(id={self.id!r}, exists={self.exists})"


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (full replace)."""
        await self._client.commit_write(self._path, data)

    async def create(self, data: dict[str, Any]) -> None:
        """Create the document; DocumentExistsError if it is already there."""
        await self._client.commit_write(self._path, data, must_not_exist=True)

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            access_token=await self._client.get_token(),
        )
        if not out:
            return None
        return DocumentSnapshot.from_rest(out)


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
}


class _Query:
    """Fluent query builder for a collection; runs via runQuery (AND filters, order, limit)."""

    def __init__(self, client: FirestoreRESTClient, parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[FieldFilter] = []
        self._order: OrderBy | None = None
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append(FieldFilter(field, op, value))
        return self

    def order_by(self, order: OrderBy | None) -> _Query:
        self._order = order
        return self

    def limit(self, n: int | None) -> _Query:
        self._limit = n
        return self

    def to_structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": f.field},
                    "op": _OP_MAP[f.op],
                    "value": _encode_value(f.value),
                }
            }
            for f in self._filters
        ]
        if len(field_filters) == 1:
            structured["where"] = field_filters[0]
        elif field_filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": field_filters}
            }
        if self._order is not None:
            structured["orderBy"] = [
                {
                    "field": {"fieldPath": self._order.field},
                    "direction": self._order.direction.value,
                }
            ]
        if self._limit:
            structured["limit"] = self._limit
        return structured

    async def get(self) -> list[DocumentSnapshot]:
        """Execute the query and return document snapshots in result order."""
        resp = await _request_async(
            self._client._http,
            f"{_BASE}/{self._parent}:runQuery",
            method="POST",
            body={"structuredQuery": self.to_structured_query()},
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        return [
            DocumentSnapshot.from_rest(item["document"])
            for item in items
            if "document" in item
        ]


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def add(self, data: dict[str, Any]) -> str:
        """Create a document under a fresh ID and return that ID."""
        ref = self.document(generate_document_id())
        await ref.create(data)
        return ref.id

    def query(self) -> _Query:
        """Start a query. Chain .where(), .order_by(), .limit(), then await .get()."""
        parent = self._path.rsplit("/", 1)[0]
        return _Query(self._client, parent, self.id)

    async def stream(self, page_size: int = 300) -> AsyncIterator[DocumentSnapshot]:
        """List documents in the collection, following page tokens."""
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": page_size}
            if page_token:
                params["pageToken"] = page_token
            out = await _request_async(
                self._client._http,
                f"{_BASE}/{self._path}",
                access_token=await self._client.get_token(),
                params=params,
            )
            if not out:
                return
            for doc in out.get("documents", []):
                yield DocumentSnapshot.from_rest(doc)
            page_token = out.get("nextPageToken")
            if not page_token:
                return


class FirestoreRESTClient:
    """Lightweight Firestore client using the REST API."""

    def __init__(
        self,
        project_id: str,
        token_source: TokenSource | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._token_source = token_source
        self._database = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        if self._token_source is None:
            return None
        return await self._token_source.get_token()

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    def build_query(self, query_spec: QuerySpec) -> _Query:
        """Translate a store-agnostic QuerySpec into a runnable query."""
        q = self.collection(query_spec.collection).query()
        for f in query_spec.filters:
            q.where(f.field, f.op, f.value)
        return q.order_by(query_spec.order_by).limit(query_spec.limit)

    async def run_query(self, query_spec: QuerySpec) -> list[DocumentSnapshot]:
        return await self.build_query(query_spec).get()

    async def commit_write(
        self,
        path: str,
        data: dict[str, Any],
        *,
        must_not_exist: bool = False,
    ) -> None:
        """Write one document atomically via :commit.

        ``SERVER_TIMESTAMP`` values become REQUEST_TIME transforms so the
        store's clock fills them.
        """
        plain, server_time_paths = split_server_timestamps(data)
        write: dict[str, Any] = {
            "update": {"name": path, "fields": encode_fields(plain)},
        }
        if server_time_paths:
            write["updateTransforms"] = [
                {"fieldPath": p, "setToServerValue": "REQUEST_TIME"}
                for p in server_time_paths
            ]
        if must_not_exist:
            write["currentDocument"] = {"exists": False}
        await _request_async(
            self._http,
            f"{_BASE}/{self._prefix}:commit",
            method="POST",
            body={"writes": [write]},
            access_token=await self.get_token(),
        )
