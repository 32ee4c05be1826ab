"""Contracts for the document store and the identity provider.

Callbacks are invoked on the event loop thread, zero or more times, in the
order the store produced the snapshots. A subscription stops delivering as
soon as ``close()`` returns.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from heists.application.queries import QuerySpec
    from heists.domain.entities.principal import Principal


class StoredDocument(Protocol):
    """One document as delivered by the store (decoded fields, store key)."""

    id: str

    @property
    def exists(self) -> bool:
        """False when a watched document is missing."""

    def to_dict(self) -> dict[str, Any]:
        """Decoded fields (empty when the document does not exist)."""


OnQuerySnapshot = Callable[[list["StoredDocument"]], None]
OnDocumentSnapshot = Callable[["StoredDocument"], None]
OnError = Callable[[Exception], None]
OnPrincipalChange = Callable[["Principal | None"], None]


class Subscription(Protocol):
    """Handle for a live subscription. ``close()`` is idempotent."""

    @property
    def closed(self) -> bool:
        """True once close() has been called or the stream ended on error."""

    def close(self) -> None:
        """Stop delivery immediately. Calling again is a no-op."""


class DocumentStore(Protocol):
    """Protocol for the remote document store."""

    def subscribe_to_query(
        self, query: QuerySpec, on_snapshot: OnQuerySnapshot, on_error: OnError
    ) -> Subscription:
        """Deliver the complete result of ``query`` now and after every change."""

    def subscribe_to_document(
        self,
        collection: str,
        document_id: str,
        on_snapshot: OnDocumentSnapshot,
        on_error: OnError,
    ) -> Subscription:
        """Deliver the current state of one document now and after every change."""

    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        """Create a document with a store-assigned id and return that id."""

    async def set_document(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """Create or overwrite the document at ``collection/document_id``."""

    async def list_documents(self, collection: str) -> list[StoredDocument]:
        """One-shot read of every document in ``collection``."""


class IdentityProvider(Protocol):
    """Protocol for the external identity provider."""

    def subscribe(self, on_change: OnPrincipalChange) -> Callable[[], None]:
        """Report the current principal (asynchronously) and every change; return unsubscribe."""

    async def sign_in(self, email: str, password: str) -> Principal:
        """Authenticate with email and password."""

    async def sign_up(self, email: str, password: str) -> Principal:
        """Create an account and sign it in."""

    async def sign_out(self) -> None:
        """Forget the current principal."""

    async def update_display_alias(self, principal: Principal, alias: str) -> Principal:
        """Set the principal's display alias (codename); return the updated principal."""
