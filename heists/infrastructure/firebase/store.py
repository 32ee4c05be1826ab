"""Firestore-backed document store (implements DocumentStore)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from heists.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from heists.infrastructure.firebase.listener import PollingSubscription

if TYPE_CHECKING:
    from heists.application.interfaces.ports import OnDocumentSnapshot, OnError, OnQuerySnapshot
    from heists.application.queries import QuerySpec


def _docs_fingerprint(docs: list[DocumentSnapshot]) -> list[tuple]:
    return [(d.id, d.exists, d.update_time, d.to_dict()) for d in docs]


def _doc_fingerprint(doc: DocumentSnapshot) -> tuple:
    return (doc.id, doc.exists, doc.update_time, doc.to_dict())


class FirestoreDocumentStore:
    """Document store on the Firestore REST client; live reads are polling subscriptions."""

    def __init__(self, client: FirestoreRESTClient, poll_interval: float = 2.0) -> None:
        self._client = client
        self._poll_interval = poll_interval

    def subscribe_to_query(
        self, query: QuerySpec, on_snapshot: OnQuerySnapshot, on_error: OnError
    ) -> PollingSubscription[list[DocumentSnapshot]]:
        """Deliver the full result of ``query`` now and after every change."""
        return PollingSubscription(
            lambda: self._client.run_query(query),
            on_snapshot,
            on_error,
            interval=self._poll_interval,
            fingerprint=_docs_fingerprint,
            label=f"query:{query.collection}",
        )

    def subscribe_to_document(
        self,
        collection: str,
        document_id: str,
        on_snapshot: OnDocumentSnapshot,
        on_error: OnError,
    ) -> PollingSubscription[DocumentSnapshot]:
        """Deliver one document now and after every change (``exists=False`` when missing)."""
        ref = self._client.collection(collection).document(document_id)

        async def fetch() -> DocumentSnapshot:
            doc = await ref.get()
            return doc if doc is not None else DocumentSnapshot.missing(document_id)

        return PollingSubscription(
            fetch,
            on_snapshot,
            on_error,
            interval=self._poll_interval,
            fingerprint=_doc_fingerprint,
            label=f"doc:{collection}/{document_id}",
        )

    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        """Create a document under a fresh ID; return the ID."""
        return await self._client.collection(collection).add(fields)

    async def set_document(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """Create or overwrite ``collection/document_id``."""
        await self._client.collection(collection).document(document_id).set(fields)

    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        """Return every document in ``collection`` (one-shot)."""
        return [doc async for doc in self._client.collection(collection).stream()]
