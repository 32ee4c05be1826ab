"""Ports (Protocols) the application layer depends on.

No runtime imports from heists.infrastructure.
"""

from heists.application.interfaces.ports import (
    DocumentStore,
    IdentityProvider,
    OnDocumentSnapshot,
    OnError,
    OnPrincipalChange,
    OnQuerySnapshot,
    StoredDocument,
    Subscription,
)

__all__ = [
    "DocumentStore",
    "IdentityProvider",
    "OnDocumentSnapshot",
    "OnError",
    "OnPrincipalChange",
    "OnQuerySnapshot",
    "StoredDocument",
    "Subscription",
]
