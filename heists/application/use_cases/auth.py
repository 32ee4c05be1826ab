"""Sign-up and login flows on top of the identity provider."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from heists.application.interfaces.ports import DocumentStore, IdentityProvider
from heists.application.services.codename import generate_codename
from heists.core.constants import COLLECTION_USERS
from heists.domain.entities.principal import Principal
from heists.domain.exceptions import AuthenticationException
from heists.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)

DEFAULT_AUTH_ERROR_MESSAGE = "Something went wrong. Please try again."

AUTH_ERROR_MESSAGES: dict[str, str] = {
    "auth/email-already-in-use": "This email is already registered. Try logging in instead.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/network-request-failed": "Network error. Please check your connection and try again.",
    "auth/invalid-credential": "Invalid email or password.",
    "auth/too-many-requests": "Too many attempts. Please wait a moment and try again.",
}


def get_auth_error_message(error: object) -> str:
    """Map an auth error (anything with an ``auth/...`` ``code``) to a friendly message."""
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return AUTH_ERROR_MESSAGES.get(code, DEFAULT_AUTH_ERROR_MESSAGE)
    return DEFAULT_AUTH_ERROR_MESSAGE


@traced("heists.update_display_alias")
async def update_display_alias_with_retry(
    provider: IdentityProvider,
    principal: Principal,
    alias: str,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Principal:
    """Set the display alias, retrying with exponential backoff (0.5s, 1s, ...).

    Raises:
        AuthenticationException: Every attempt failed.
    """
    last_error: Exception | None = None
    for attempt in range(max_attempts):
        try:
            return await provider.update_display_alias(principal, alias)
        except Exception as e:
            last_error = e
            logger.warning(
                "Display alias update failed (attempt %d/%d): %s",
                attempt + 1,
                max_attempts,
                e,
            )
            if attempt < max_attempts - 1:
                await sleep(base_delay * 2**attempt)

    raise AuthenticationException(
        f"Failed to update profile after {max_attempts} attempts: {last_error}",
        code="auth/profile-update-failed",
    ) from last_error


@traced("heists.sign_up_user")
async def sign_up_user(
    provider: IdentityProvider,
    store: DocumentStore,
    email: str,
    password: str,
) -> Principal:
    """Create an account, give it a codename and publish its profile.

    Account creation errors propagate. A failed alias update or profile
    write is logged and the (signed-in) principal is still returned.
    """
    principal = await provider.sign_up(email, password)
    codename = generate_codename()

    try:
        principal = await update_display_alias_with_retry(provider, principal, codename)
    except AuthenticationException:
        logger.exception("Failed to set display alias for uid=%s", principal.uid)

    try:
        await store.set_document(
            COLLECTION_USERS, principal.uid, {"id": principal.uid, "codename": codename}
        )
    except Exception:
        logger.exception("Failed to write user profile for uid=%s", principal.uid)

    logger.info("Signed up uid=%s as %s", principal.uid, codename)
    return principal


@traced("heists.login_user")
async def login_user(provider: IdentityProvider, email: str, password: str) -> str | None:
    """Sign in and return the principal's codename (None if it was never set)."""
    principal = await provider.sign_in(email, password)
    return principal.display_name
