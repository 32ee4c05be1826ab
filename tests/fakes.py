# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from heists.application.queries import QuerySpec
from heists.domain.entities.principal import Principal

# 2026-02-20T12:00:00Z; heists created now are due 2026-02-22T12:00:00Z.
NOW = datetime(2026, 2, 20, 12, 0, tzinfo=UTC)

ALICE = Principal(uid="alice", display_name="SwiftCrimsonFalcon", email="alice@example.com")
BOB = Principal(uid="bob", display_name="SilentAzureRaven", email="bob@example.com")


@dataclass
class FakeDoc:
    """Stored document as the store adapters deliver it."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    exists: bool = True

    def to_dict(self) -> dict[str, Any]:
        return self.data


class FakeSubscription:
    """
    Subscription handle that lets tests push snapshots and errors.

    ``emit``/``fail`` call the callbacks even after ``close()`` so tests can
    simulate a late delivery racing a teardown.
    """

    def __init__(self, target: Any, on_snapshot: Callable, on_error: Callable) -> None:
        self.target = target
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.closed = False
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def emit(self, payload: Any) -> None:
        self.on_snapshot(payload)

    def fail(self, exc: Exception) -> None:
        self.on_error(exc)


@dataclass
class FakeDocumentStore:
    """In-memory DocumentStore; captures subscriptions and writes for assertions."""

    query_subscriptions: list[FakeSubscription] = field(default_factory=list)
    document_subscriptions: list[FakeSubscription] = field(default_factory=list)
    created: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    documents: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    next_id: str = "heist-1"
    create_error: Exception | None = None
    set_error: Exception | None = None
    subscribe_error: Exception | None = None

    @property
    def open_subscriptions(self) -> list[FakeSubscription]:
        return [
            s for s in self.query_subscriptions + self.document_subscriptions if not s.closed
        ]

    @property
    def last_query(self) -> QuerySpec:
        return self.query_subscriptions[-1].target

    def subscribe_to_query(self, query, on_snapshot, on_error) -> FakeSubscription:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        sub = FakeSubscription(query, on_snapshot, on_error)
        self.query_subscriptions.append(sub)
        return sub

    def subscribe_to_document(self, collection, document_id, on_snapshot, on_error) -> FakeSubscription:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        sub = FakeSubscription((collection, document_id), on_snapshot, on_error)
        self.document_subscriptions.append(sub)
        return sub

    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        if self.create_error is not None:
            raise self.create_error
        self.created.append((collection, fields))
        self.documents.setdefault(collection, {})[self.next_id] = fields
        return self.next_id

    async def set_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        if self.set_error is not None:
            raise self.set_error
        self.documents.setdefault(collection, {})[document_id] = fields

    async def list_documents(self, collection: str) -> list[FakeDoc]:
        return [
            FakeDoc(id=doc_id, data=data)
            for doc_id, data in self.documents.get(collection, {}).items()
        ]


class FakeIdentityProvider:
    """
    Deterministic IdentityProvider for unit tests.

    - ``emit`` pushes an auth state change synchronously
    - ``alias_failures`` makes the next N alias updates raise
    """

    def __init__(self, principal: Principal | None = None) -> None:
        self.principal = principal
        self.listeners: list[Callable[[Principal | None], None]] = []
        self.alias_failures = 0
        self.alias_calls: list[str] = []
        self.sign_in_error: Exception | None = None

    def subscribe(self, on_change):
        self.listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self.listeners:
                self.listeners.remove(on_change)

        return unsubscribe

    def emit(self, principal: Principal | None) -> None:
        self.principal = principal
        for listener in list(self.listeners):
            listener(principal)

    async def sign_in(self, email: str, password: str) -> Principal:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        assert self.principal is not None
        return self.principal

    async def sign_up(self, email: str, password: str) -> Principal:
        self.principal = Principal(uid=f"uid-{email.split('@')[0]}", email=email)
        return self.principal

    async def sign_out(self) -> None:
        self.emit(None)

    async def update_display_alias(self, principal: Principal, alias: str) -> Principal:
        self.alias_calls.append(alias)
        if self.alias_failures > 0:
            self.alias_failures -= 1
            raise RuntimeError("profile update failed")
        self.principal = replace(principal, display_name=alias)
        return self.principal
