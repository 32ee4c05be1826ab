"""Firebase Auth and Firestore integration (REST)."""

from heists.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    ServiceAccountTokenSource,
)
from heists.infrastructure.firebase.auth import FirebaseAuthClient
from heists.infrastructure.firebase.client import (
    create_firestore_client,
    load_service_account_info,
)
from heists.infrastructure.firebase.listener import PollingSubscription
from heists.infrastructure.firebase.store import FirestoreDocumentStore

__all__ = [
    "DocumentSnapshot",
    "FirebaseAuthClient",
    "FirestoreDocumentStore",
    "FirestoreRESTClient",
    "PollingSubscription",
    "ServiceAccountTokenSource",
    "create_firestore_client",
    "load_service_account_info",
]
