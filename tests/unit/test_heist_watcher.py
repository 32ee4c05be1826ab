"""HeistWatcher unit tests (single heist by id)."""

from heists.application.watchers import HeistState, HeistWatcher, watch_heist
from heists.domain.enums import WatchStatus
from heists.domain.exceptions import HeistLoadError
from heists.infrastructure.exceptions import StoreException
from tests.fakes import FakeDoc, FakeDocumentStore

HEIST_FIELDS = {
    "id": "ignored",
    "title": "Vault job",
    "description": "Crack the vault",
    "createdBy": "alice",
    "createdByCodename": "SwiftCrimsonFalcon",
    "assignedTo": "bob",
    "assignedToCodename": "SilentAzureRaven",
}


def test_blank_id_is_not_found_without_subscribing(store: FakeDocumentStore) -> None:
    for heist_id in ("", "   "):
        watcher = watch_heist(store, heist_id)
        assert watcher.state == HeistState(status=WatchStatus.NOT_FOUND)
        assert watcher.not_found is True
        assert watcher.loading is False
    assert store.document_subscriptions == []


def test_subscribes_to_heists_document(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    assert watcher.loading is True
    assert store.document_subscriptions[0].target == ("heists", "h1")


def test_existing_document_is_ready(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    store.document_subscriptions[0].emit(FakeDoc("h1", HEIST_FIELDS))
    assert watcher.state.status is WatchStatus.READY
    assert watcher.heist is not None
    assert watcher.heist.id == "h1"
    assert watcher.heist.title == "Vault job"
    assert watcher.error is None


def test_missing_document_is_not_found(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "gone")
    store.document_subscriptions[0].emit(FakeDoc("gone", exists=False))
    assert watcher.not_found is True
    assert watcher.heist is None
    assert watcher.error is None


def test_deleted_after_ready_becomes_not_found(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    sub = store.document_subscriptions[0]
    sub.emit(FakeDoc("h1", HEIST_FIELDS))
    sub.emit(FakeDoc("h1", exists=False))
    assert watcher.state == HeistState(status=WatchStatus.NOT_FOUND)


def test_error_is_generic_load_error(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    store.document_subscriptions[0].fail(
        StoreException("Missing or insufficient permissions.", "permission-denied", 403)
    )
    assert watcher.state.status is WatchStatus.ERRORED
    assert isinstance(watcher.error, HeistLoadError)
    assert watcher.error.message == "Failed to load heist. Please try again."
    assert watcher.heist is None


def test_set_heist_id_switches_subscription(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    old = store.document_subscriptions[0]
    watcher.set_heist_id("h1")
    assert len(store.document_subscriptions) == 1

    watcher.set_heist_id("h2")
    assert old.closed
    assert store.document_subscriptions[1].target == ("heists", "h2")
    old.emit(FakeDoc("h1", HEIST_FIELDS))
    assert watcher.state.status is WatchStatus.LOADING


def test_set_blank_id_closes_subscription(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    watcher.set_heist_id("")
    assert store.open_subscriptions == []
    assert watcher.not_found is True


def test_refetch_reopens(store: FakeDocumentStore) -> None:
    watcher = watch_heist(store, "h1")
    watcher.refetch()
    assert [s.closed for s in store.document_subscriptions] == [True, False]


def test_listener_not_called_after_close(store: FakeDocumentStore) -> None:
    watcher = HeistWatcher(store, "h1")
    seen: list[HeistState] = []
    watcher.subscribe(seen.append)
    watcher.start()
    sub = store.document_subscriptions[0]
    watcher.close()
    sub.emit(FakeDoc("h1", HEIST_FIELDS))
    assert seen == []
    assert sub.closed
