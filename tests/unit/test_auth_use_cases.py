"""Sign-up, login, alias retry and auth error messages."""

from unittest.mock import AsyncMock

import pytest

from heists.application.services.codename import (
    ADJECTIVES,
    COLORS,
    OBJECTS,
    generate_codename,
)
from heists.application.use_cases.auth import (
    DEFAULT_AUTH_ERROR_MESSAGE,
    get_auth_error_message,
    login_user,
    sign_up_user,
    update_display_alias_with_retry,
)
from heists.domain.entities.principal import Principal
from heists.domain.exceptions import AuthenticationException
from tests.fakes import ALICE, FakeDocumentStore, FakeIdentityProvider


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestAuthErrorMessages:
    @pytest.mark.parametrize(
        ("code", "message"),
        [
            ("auth/email-already-in-use", "This email is already registered. Try logging in instead."),
            ("auth/invalid-email", "Please enter a valid email address."),
            ("auth/weak-password", "Password should be at least 6 characters."),
            ("auth/invalid-credential", "Invalid email or password."),
        ],
    )
    def test_known_codes(self, code: str, message: str) -> None:
        assert get_auth_error_message(AuthenticationException(code=code)) == message

    def test_unknown_code_uses_default(self) -> None:
        assert get_auth_error_message(AuthenticationException(code="auth/odd")) == (
            DEFAULT_AUTH_ERROR_MESSAGE
        )

    def test_non_auth_error_uses_default(self) -> None:
        assert get_auth_error_message(RuntimeError("boom")) == DEFAULT_AUTH_ERROR_MESSAGE


class TestAliasRetry:
    async def test_succeeds_after_backoff(self, provider: FakeIdentityProvider) -> None:
        provider.alias_failures = 2
        sleeps = _Sleeps()

        principal = await update_display_alias_with_retry(
            provider, Principal(uid="u1"), "SlyGoldenKey", sleep=sleeps
        )

        assert principal.display_name == "SlyGoldenKey"
        assert provider.alias_calls == ["SlyGoldenKey"] * 3
        assert sleeps.delays == [0.5, 1.0]

    async def test_gives_up_after_max_attempts(self, provider: FakeIdentityProvider) -> None:
        provider.alias_failures = 5
        sleeps = _Sleeps()

        with pytest.raises(AuthenticationException) as exc_info:
            await update_display_alias_with_retry(
                provider, Principal(uid="u1"), "SlyGoldenKey", sleep=sleeps
            )

        assert exc_info.value.code == "auth/profile-update-failed"
        assert len(provider.alias_calls) == 3
        assert sleeps.delays == [0.5, 1.0]


class TestSignUp:
    async def test_sets_codename_and_writes_profile(
        self, provider: FakeIdentityProvider, store: FakeDocumentStore
    ) -> None:
        principal = await sign_up_user(provider, store, "carol@example.com", "secret1")

        assert principal.uid == "uid-carol"
        assert principal.display_name
        assert store.documents["users"]["uid-carol"] == {
            "id": "uid-carol",
            "codename": principal.display_name,
        }

    async def test_profile_write_failure_still_signs_up(
        self, provider: FakeIdentityProvider, store: FakeDocumentStore
    ) -> None:
        store.set_error = RuntimeError("permission denied")
        principal = await sign_up_user(provider, store, "carol@example.com", "secret1")
        assert principal.display_name
        assert "users" not in store.documents


class TestLogin:
    async def test_returns_codename(self) -> None:
        provider = FakeIdentityProvider(principal=ALICE)
        assert await login_user(provider, "alice@example.com", "pw") == "SwiftCrimsonFalcon"

    async def test_provider_error_propagates(self) -> None:
        provider = FakeIdentityProvider(principal=ALICE)
        provider.sign_in_error = AuthenticationException(code="auth/invalid-credential")
        with pytest.raises(AuthenticationException):
            await login_user(provider, "alice@example.com", "wrong")


class TestCodename:
    def test_three_words_from_lists(self) -> None:
        codename = generate_codename()
        matches = [
            (a, c, o)
            for a in ADJECTIVES
            for c in COLORS
            for o in OBJECTS
            if a + c + o == codename
        ]
        assert matches

    def test_lists_have_twenty_entries(self) -> None:
        assert len(ADJECTIVES) == len(COLORS) == len(OBJECTS) == 20


async def test_login_calls_provider_with_credentials() -> None:
    """login_user passes credentials through and returns the alias."""
    provider = AsyncMock()
    provider.sign_in = AsyncMock(return_value=Principal(uid="u1", display_name=None))

    assert await login_user(provider, "u1@example.com", "pw") is None
    provider.sign_in.assert_awaited_once_with("u1@example.com", "pw")
