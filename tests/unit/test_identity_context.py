"""Tests for IdentityContext (principal + auth_loading fed by the provider)."""

from heists.application.identity import IdentityContext, IdentityState
from tests.fakes import ALICE, BOB, FakeIdentityProvider


def test_starts_unresolved(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    assert identity.auth_loading is True
    assert identity.principal is None
    assert identity.state.principal_id is None
    assert identity.started is False


def test_first_report_resolves_auth(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    provider.emit(ALICE)
    assert identity.state == IdentityState(principal=ALICE, auth_loading=False)
    assert identity.state.principal_id == "alice"


def test_anonymous_report_resolves_auth(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    provider.emit(None)
    assert identity.auth_loading is False
    assert identity.principal is None


def test_start_is_idempotent(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    identity.start()
    assert len(provider.listeners) == 1


def test_listeners_see_changes_once(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    seen: list[IdentityState] = []
    identity.subscribe(seen.append)

    provider.emit(ALICE)
    provider.emit(ALICE)
    provider.emit(BOB)
    provider.emit(None)

    assert [s.principal_id for s in seen] == ["alice", "bob", None]


def test_unsubscribe_stops_notifications(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    seen: list[IdentityState] = []
    unsubscribe = identity.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    provider.emit(ALICE)
    assert seen == []


def test_failing_listener_does_not_block_others(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    seen: list[IdentityState] = []

    def broken(_state: IdentityState) -> None:
        raise RuntimeError("boom")

    identity.subscribe(broken)
    identity.subscribe(seen.append)
    provider.emit(ALICE)
    assert len(seen) == 1


def test_close_unsubscribes_from_provider(provider: FakeIdentityProvider) -> None:
    identity = IdentityContext(provider)
    identity.start()
    identity.close()
    assert provider.listeners == []
    assert identity.started is False
    identity.close()
