"""Firebase Authentication over the Identity Toolkit REST API.

Implements the IdentityProvider port and acts as the Firestore token
source for the signed-in user. The session lives in memory only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx

from heists.domain.entities.principal import Principal
from heists.domain.exceptions import AuthenticationException
from heists.shared.telemetry.tracing import traced
from heists.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from heists.application.interfaces.ports import OnPrincipalChange

logger = logging.getLogger(__name__)

_IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
_SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Refresh the ID token this long before it actually expires.
_TOKEN_REFRESH_MARGIN = timedelta(seconds=60)

# Identity Toolkit error message -> auth/... code.
_ERROR_CODES: dict[str, str] = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "MISSING_PASSWORD": "auth/missing-password",
    "EMAIL_NOT_FOUND": "auth/invalid-credential",
    "INVALID_PASSWORD": "auth/invalid-credential",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "INVALID_ID_TOKEN": "auth/invalid-user-token",
    "TOKEN_EXPIRED": "auth/user-token-expired",
    "INVALID_REFRESH_TOKEN": "auth/invalid-user-token",
    "USER_NOT_FOUND": "auth/user-not-found",
}


def auth_error_code(message: str | None) -> str:
    """Map e.g. ``"WEAK_PASSWORD : Password should be..."`` to ``auth/weak-password``."""
    if not message:
        return "auth/unknown"
    key = message.split(":", 1)[0].strip()
    return _ERROR_CODES.get(key, "auth/unknown")


@dataclass(frozen=True)
class _Session:
    principal: Principal
    id_token: str
    refresh_token: str
    expires_at: datetime


class FirebaseAuthClient:
    """Email/password auth against Firebase, with a change feed for the identity context."""

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not api_key:
            raise ValueError("Firebase API key is required for authentication")
        self._api_key = api_key
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._clock = clock
        self._session: _Session | None = None
        self._listeners: list[OnPrincipalChange] = []
        self._refresh_lock = asyncio.Lock()

    @property
    def current_principal(self) -> Principal | None:
        return self._session.principal if self._session else None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it."""
        if self._owns_http:
            await self._http.aclose()

    # ---- change feed ----

    def subscribe(self, on_change: OnPrincipalChange) -> Callable[[], None]:
        """Report the current principal on the next loop iteration, then every change."""
        self._listeners.append(on_change)

        def deliver_initial() -> None:
            if on_change in self._listeners:
                self._call(on_change, self.current_principal)

        asyncio.get_running_loop().call_soon(deliver_initial)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def _call(self, listener: OnPrincipalChange, principal: Principal | None) -> None:
        try:
            listener(principal)
        except Exception:
            logger.exception("Auth state listener failed")

    def _set_session(self, session: _Session | None) -> None:
        self._session = session
        principal = session.principal if session else None
        for listener in list(self._listeners):
            self._call(listener, principal)

    # ---- REST ----

    async def _post(self, url: str, *, json: dict | None = None, data: dict | None = None) -> dict[str, Any]:
        try:
            resp = await self._http.post(url, params={"key": self._api_key}, json=json, data=data)
        except httpx.TransportError as e:
            raise AuthenticationException(
                "Network error while contacting the identity provider",
                code="auth/network-request-failed",
            ) from e
        if resp.status_code != 200:
            message = None
            try:
                message = resp.json().get("error", {}).get("message")
            except ValueError:
                pass
            code = auth_error_code(message)
            logger.info("Identity provider rejected request: %s (%s)", message, code)
            raise AuthenticationException(message or "Authentication failed", code=code)
        return resp.json()

    def _session_from(self, payload: dict[str, Any], principal: Principal) -> _Session:
        expires_in = int(payload.get("expiresIn") or payload.get("expires_in") or 3600)
        return _Session(
            principal=principal,
            id_token=payload.get("idToken") or payload["id_token"],
            refresh_token=payload.get("refreshToken") or payload["refresh_token"],
            expires_at=self._clock() + timedelta(seconds=expires_in),
        )

    async def _password_auth(self, endpoint: str, email: str, password: str) -> Principal:
        payload = await self._post(
            f"{_IDENTITY_BASE}/accounts:{endpoint}",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        principal = Principal(
            uid=payload["localId"],
            display_name=payload.get("displayName") or None,
            email=payload.get("email") or email,
        )
        self._set_session(self._session_from(payload, principal))
        return principal

    @traced("auth.sign_in")
    async def sign_in(self, email: str, password: str) -> Principal:
        principal = await self._password_auth("signInWithPassword", email, password)
        logger.info("Signed in uid=%s", principal.uid)
        return principal

    @traced("auth.sign_up")
    async def sign_up(self, email: str, password: str) -> Principal:
        principal = await self._password_auth("signUp", email, password)
        logger.info("Account created uid=%s", principal.uid)
        return principal

    async def sign_out(self) -> None:
        if self._session is not None:
            logger.info("Signed out uid=%s", self._session.principal.uid)
            self._set_session(None)

    @traced("auth.update_display_alias")
    async def update_display_alias(self, principal: Principal, alias: str) -> Principal:
        """Set displayName on the signed-in account; ``principal`` must be that account."""
        if self._session is None or self._session.principal.uid != principal.uid:
            raise AuthenticationException(
                "Display alias can only be changed for the signed-in user",
                code="auth/no-current-user",
            )
        id_token = await self.get_token()
        await self._post(
            f"{_IDENTITY_BASE}/accounts:update",
            json={"idToken": id_token, "displayName": alias, "returnSecureToken": False},
        )
        updated = replace(principal, display_name=alias)
        if self._session is not None and self._session.principal.uid == updated.uid:
            self._set_session(replace(self._session, principal=updated))
        return updated

    async def get_token(self) -> str | None:
        """Return the current ID token, refreshing it when close to expiry."""
        if self._session is None:
            return None
        if self._clock() + _TOKEN_REFRESH_MARGIN < self._session.expires_at:
            return self._session.id_token
        async with self._refresh_lock:
            session = self._session
            if session is None:
                return None
            if self._clock() + _TOKEN_REFRESH_MARGIN < session.expires_at:
                return session.id_token
            payload = await self._post(
                _SECURE_TOKEN_URL,
                data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
            )
            self._session = self._session_from(payload, session.principal)
            logger.debug("ID token refreshed for uid=%s", session.principal.uid)
            return self._session.id_token
