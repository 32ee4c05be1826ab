"""Firestore client construction (REST-based, no firebase-admin).

Admin tooling authenticates with a service account taken from either
FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) or FIREBASE_SERVICE_ACCOUNT_PATH
(file path). Without one, requests carry the signed-in user's ID token.
"""

import json
import logging
from pathlib import Path

import httpx

from heists.core.config import Settings
from heists.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    ServiceAccountTokenSource,
    TokenSource,
)

logger = logging.getLogger(__name__)


def load_service_account_info(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path, or None if neither is set."""
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            raise ValueError(
                f"FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: {path} "
                f"(resolved: {resolved})"
            )
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    token_source: TokenSource | None = None,
) -> FirestoreRESTClient:
    """Build a Firestore client for the configured project.

    A configured service account takes precedence over ``token_source``.
    """
    key_dict = load_service_account_info(settings)
    project_id = settings.firebase_project_id
    if key_dict is not None:
        project_id = project_id or key_dict.get("project_id", "")
        if not project_id:
            raise ValueError("Firebase service account JSON missing 'project_id'")
        token_source = ServiceAccountTokenSource.from_info(key_dict)
        logger.info("Firestore client using service account for project %s", project_id)
    else:
        project_id = settings.resolved_project_id()
        logger.info("Firestore client using user ID tokens for project %s", project_id)

    return FirestoreRESTClient(
        project_id,
        token_source,
        http_client=http_client,
        timeout=settings.http_timeout_seconds,
    )
