"""User profile listing for the assignee picker."""

from __future__ import annotations

from heists.application.interfaces.ports import DocumentStore
from heists.core.constants import COLLECTION_USERS
from heists.domain.entities.principal import Principal, UserProfile
from heists.shared.telemetry.tracing import add_span_attributes, traced


@traced("heists.fetch_users")
async def fetch_users(store: DocumentStore) -> list[UserProfile]:
    """Return every user profile (one-shot read, not live)."""
    docs = await store.list_documents(COLLECTION_USERS)
    add_span_attributes(user_count=len(docs))
    return [
        UserProfile(id=doc.id, codename=str(doc.to_dict().get("codename") or ""))
        for doc in docs
    ]


async def fetch_assignees(store: DocumentStore, principal: Principal) -> list[UserProfile]:
    """Return the profiles ``principal`` may assign a heist to (everyone but themself)."""
    return [user for user in await fetch_users(store) if user.id != principal.uid]
