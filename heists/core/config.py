"""Client configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Firebase connection details are validated at load time.
"""

import json
from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

EXPIRY_POLICIES = ("deadline", "is_active")


class Settings(BaseSettings):
    """Client settings loaded from environment and .env.

    Either FIREBASE_PROJECT_ID or a service account (whose JSON carries
    ``project_id``) must be configured.
    """

    # App
    app_name: str = "heists"
    app_version: str = "0.1.0"
    debug: bool = False

    # Firebase project. The web API key is needed for the Auth REST API.
    firebase_project_id: str = ""
    firebase_api_key: SecretStr = SecretStr("")

    # Firebase / Firestore admin access: key (env JSON) or path (file).
    # When unset, Firestore calls use the signed-in user's ID token.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    # Live subscriptions re-run their query at this period (seconds).
    firestore_poll_interval_seconds: float = 2.0
    http_timeout_seconds: float = 30.0

    # Heists
    heist_expiry_policy: str = "deadline"
    heist_query_limit: int = 50
    heist_duration_hours: int = 48

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_firebase_and_policy(self) -> "Settings":
        """Validate project resolution, expiry policy and poll interval."""
        has_key = (
            self.firebase_service_account_key
            and self.firebase_service_account_key.get_secret_value()
        )
        if not self.firebase_project_id and not has_key and not self.firebase_service_account_path:
            raise ValueError(
                "FIREBASE_PROJECT_ID is required unless FIREBASE_SERVICE_ACCOUNT_KEY "
                "or FIREBASE_SERVICE_ACCOUNT_PATH is set."
            )
        if self.heist_expiry_policy not in EXPIRY_POLICIES:
            raise ValueError(
                f"heist_expiry_policy must be one of {EXPIRY_POLICIES}, "
                f"got: {self.heist_expiry_policy!r}"
            )
        if self.firestore_poll_interval_seconds <= 0:
            raise ValueError("firestore_poll_interval_seconds must be positive")
        if self.heist_query_limit <= 0:
            raise ValueError("heist_query_limit must be positive")
        return self

    def resolved_project_id(self) -> str:
        """Return the configured project id, falling back to the service account's."""
        if self.firebase_project_id:
            return self.firebase_project_id
        if self.firebase_service_account_key:
            try:
                key = json.loads(self.firebase_service_account_key.get_secret_value())
            except json.JSONDecodeError as e:
                raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
            project_id = key.get("project_id")
            if project_id:
                return project_id
        raise ValueError("Firebase project id could not be resolved")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
