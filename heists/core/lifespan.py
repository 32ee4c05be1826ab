"""Runtime lifespan: startup and shutdown.

Single place for wiring infrastructure (HTTP client, Firebase Auth,
Firestore, identity context, telemetry). No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from heists.application.identity import IdentityContext
from heists.application.watchers import HeistsWatcher, HeistWatcher, watch_heist, watch_heists
from heists.core.config import Settings, get_settings
from heists.domain.enums import HeistFilter
from heists.domain.expiry import ExpiryPolicy, get_expiry_policy
from heists.infrastructure.firebase.auth import FirebaseAuthClient
from heists.infrastructure.firebase.client import create_firestore_client
from heists.infrastructure.firebase.store import FirestoreDocumentStore
from heists.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


@dataclass
class HeistRuntime:
    """Everything a client session needs, built once per process."""

    settings: Settings
    http: httpx.AsyncClient
    auth: FirebaseAuthClient
    store: FirestoreDocumentStore
    identity: IdentityContext
    policy: ExpiryPolicy

    def watch_heists(self, heist_filter: HeistFilter | str) -> HeistsWatcher:
        """Start a list watcher using the configured expiry policy and limit."""
        return watch_heists(
            self.store,
            self.identity,
            heist_filter,
            policy=self.policy,
            limit=self.settings.heist_query_limit,
        )

    def watch_heist(self, heist_id: str) -> HeistWatcher:
        return watch_heist(self.store, heist_id)


@asynccontextmanager
async def create_runtime(settings: Settings | None = None) -> AsyncIterator[HeistRuntime]:
    """Run startup then yield the runtime; on exit run shutdown.

    Startup order: telemetry (if enabled), shared HTTP client, auth client,
    Firestore client, identity context. Shutdown runs in reverse.
    """
    settings = settings or get_settings()

    # ---- Startup ----
    if settings.telemetry_enabled:
        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        telemetry.instrument_logging()
        set_telemetry(telemetry)
        logger.info("Telemetry initialized")

    # Shared HTTP client for Auth and Firestore calls (connection reuse).
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    auth = FirebaseAuthClient(settings.firebase_api_key.get_secret_value(), http_client=http)
    firestore = create_firestore_client(settings, http_client=http, token_source=auth)
    store = FirestoreDocumentStore(firestore, poll_interval=settings.firestore_poll_interval_seconds)
    identity = IdentityContext(auth)
    identity.start()

    runtime = HeistRuntime(
        settings=settings,
        http=http,
        auth=auth,
        store=store,
        identity=identity,
        policy=get_expiry_policy(settings.heist_expiry_policy),
    )
    logger.info(
        "Runtime started: project=%s, expiry_policy=%s",
        firestore.project_id,
        runtime.policy.name,
    )

    try:
        yield runtime
    finally:
        # ---- Shutdown ----
        identity.close()
        await firestore.aclose()
        await auth.aclose()
        await http.aclose()
        logger.info("HTTP client closed")

        telemetry_instance = get_telemetry()
        if telemetry_instance is not None:
            telemetry_instance.shutdown()
            set_telemetry(None)
