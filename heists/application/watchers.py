"""Live heist views: one list watcher per filter, one watcher per heist id.

A watcher owns at most one store subscription at a time. Whenever its
inputs change (filter, principal, auth resolution, heist id) or
``refetch()`` is called, it closes the current subscription before opening
the next one, and it ignores callbacks from any subscription it has
already closed. Every store snapshot replaces the published result
wholesale.

Failures never escape a watcher: they become an ``ERRORED`` state with a
generic message, and the backend error is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from heists.application.identity import IdentityContext, IdentityState
from heists.application.interfaces.ports import DocumentStore, StoredDocument, Subscription
from heists.application.queries import DEFAULT_QUERY_LIMIT, build_query
from heists.core.constants import COLLECTION_HEISTS, LOAD_HEISTS_ERROR_MESSAGE
from heists.domain.entities.heist import Heist, HeistConverter
from heists.domain.enums import HeistFilter, WatchStatus
from heists.domain.exceptions import HeistLoadError
from heists.domain.expiry import DEFAULT_EXPIRY_POLICY, ExpiryPolicy
from heists.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_LOADING_STATUSES = frozenset({WatchStatus.IDLE, WatchStatus.LOADING})


@dataclass(frozen=True)
class HeistsState:
    """Published state of a ``HeistsWatcher``."""

    status: WatchStatus
    heists: list[Heist] = field(default_factory=list)
    error: str | None = None

    @property
    def loading(self) -> bool:
        return self.status in _LOADING_STATUSES


@dataclass(frozen=True)
class HeistState:
    """Published state of a ``HeistWatcher``."""

    status: WatchStatus
    heist: Heist | None = None
    error: HeistLoadError | None = None

    @property
    def loading(self) -> bool:
        return self.status in _LOADING_STATUSES

    @property
    def not_found(self) -> bool:
        return self.status is WatchStatus.NOT_FOUND


S = TypeVar("S")


class _Watcher(Generic[S]):
    """Listener fan-out, subscription ownership and stale-callback guarding."""

    def __init__(self, store: DocumentStore, initial: S) -> None:
        self._store = store
        self._state = initial
        self._listeners: list[Callable[[S], None]] = []
        self._subscription: Subscription | None = None
        # Bumped on every teardown; callbacks carry the value they were opened with.
        self._generation = 0
        self._started = False
        self._closed = False

    @property
    def state(self) -> S:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        """Call ``listener`` with every new state; return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        """Open the first subscription ("mount"). Idempotent."""
        if self._closed:
            raise RuntimeError("Watcher is closed")
        if self._started:
            return
        self._started = True
        self._on_start()
        self._evaluate(force=True)

    def refetch(self) -> None:
        """Tear down and reopen the subscription even if no input changed."""
        if self._started and not self._closed:
            self._evaluate(force=True)

    def close(self) -> None:
        """Close the subscription ("unmount"). No state changes happen afterwards."""
        if self._closed:
            return
        self._teardown()
        self._on_close()
        self._closed = True
        self._listeners.clear()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _on_start(self) -> None:
        pass

    def _on_close(self) -> None:
        pass

    def _evaluate(self, force: bool = False) -> None:
        raise NotImplementedError

    def _teardown(self) -> None:
        self._generation += 1
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _open(
        self,
        opener: Callable[[int], Subscription],
        on_failure: Callable[[int, Exception], None],
    ) -> None:
        generation = self._generation
        try:
            subscription = opener(generation)
        except Exception as exc:
            on_failure(generation, exc)
            return
        if self._is_current(generation):
            self._subscription = subscription
        else:
            # Superseded while opening (a synchronous callback changed inputs).
            subscription.close()

    def _set_state(self, new_state: S) -> None:
        if self._closed or new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Watcher listener failed")


class HeistsWatcher(_Watcher[HeistsState]):
    """Live list of heists for one filter, gated on the identity context.

    - auth still resolving: ``IDLE``, no subscription
    - no principal and the filter needs one: ``UNAUTHENTICATED`` with an
      empty list, no subscription
    - otherwise: ``LOADING`` until the first snapshot, then ``READY``;
      ``ERRORED`` with a generic message on a store error
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityContext,
        heist_filter: HeistFilter | str,
        *,
        policy: ExpiryPolicy = DEFAULT_EXPIRY_POLICY,
        limit: int | None = DEFAULT_QUERY_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(store, HeistsState(status=WatchStatus.IDLE))
        self._identity = identity
        self._filter = HeistFilter(heist_filter)
        self._policy = policy
        self._limit = limit
        self._clock = clock
        self._inputs: tuple[HeistFilter, str | None, bool] | None = None
        self._identity_unsubscribe: Callable[[], None] | None = None

    @property
    def filter(self) -> HeistFilter:
        return self._filter

    @property
    def heists(self) -> list[Heist]:
        return self._state.heists

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> str | None:
        return self._state.error

    def set_filter(self, heist_filter: HeistFilter | str) -> None:
        """Switch to another filter; resubscribes only if it differs."""
        self._filter = HeistFilter(heist_filter)
        if self._started and not self._closed:
            self._evaluate()

    def _on_start(self) -> None:
        self._identity_unsubscribe = self._identity.subscribe(self._on_identity)

    def _on_close(self) -> None:
        if self._identity_unsubscribe is not None:
            self._identity_unsubscribe()
            self._identity_unsubscribe = None

    def _on_identity(self, _state: IdentityState) -> None:
        self._evaluate()

    def _evaluate(self, force: bool = False) -> None:
        if self._closed:
            return
        identity = self._identity.state
        inputs = (self._filter, identity.principal_id, identity.auth_loading)
        if not force and inputs == self._inputs:
            return
        self._inputs = inputs
        self._teardown()

        if identity.auth_loading:
            self._set_state(HeistsState(status=WatchStatus.IDLE))
            return
        if identity.principal_id is None and self._filter.requires_principal:
            self._set_state(HeistsState(status=WatchStatus.UNAUTHENTICATED))
            return

        query = build_query(
            self._filter,
            identity.principal_id,
            self._clock(),
            policy=self._policy,
            limit=self._limit,
        )
        self._set_state(HeistsState(status=WatchStatus.LOADING))
        logger.debug("Subscribing to %s heists (uid=%s)", self._filter.value, identity.principal_id)
        self._open(
            lambda generation: self._store.subscribe_to_query(
                query,
                lambda docs: self._on_snapshot(generation, docs),
                lambda exc: self._on_error(generation, exc),
            ),
            self._on_error,
        )

    def _on_snapshot(self, generation: int, docs: list[StoredDocument]) -> None:
        if not self._is_current(generation):
            logger.debug("Dropping snapshot from a closed %s subscription", self._filter.value)
            return
        try:
            now = self._clock()
            heists = [HeistConverter.from_wire(doc.id, doc.to_dict(), now) for doc in docs]
        except Exception as exc:
            self._on_error(generation, exc)
            return
        self._set_state(HeistsState(status=WatchStatus.READY, heists=heists))

    def _on_error(self, generation: int, exc: Exception) -> None:
        if not self._is_current(generation):
            return
        logger.error("Heist query failed (filter=%s): %r", self._filter.value, exc)
        self._set_state(
            HeistsState(status=WatchStatus.ERRORED, error=LOAD_HEISTS_ERROR_MESSAGE)
        )


class HeistWatcher(_Watcher[HeistState]):
    """Live view of a single heist by document id.

    A blank id is ``NOT_FOUND`` straight away without subscribing; a
    missing document is ``NOT_FOUND``; an existing one is ``READY``.
    """

    def __init__(self, store: DocumentStore, heist_id: str) -> None:
        super().__init__(store, self._initial_state(heist_id))
        self._heist_id = heist_id
        self._inputs: str | None = None

    @staticmethod
    def _initial_state(heist_id: str) -> HeistState:
        if heist_id and heist_id.strip():
            return HeistState(status=WatchStatus.LOADING)
        return HeistState(status=WatchStatus.NOT_FOUND)

    @property
    def heist_id(self) -> str:
        return self._heist_id

    @property
    def heist(self) -> Heist | None:
        return self._state.heist

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> HeistLoadError | None:
        return self._state.error

    @property
    def not_found(self) -> bool:
        return self._state.not_found

    def set_heist_id(self, heist_id: str) -> None:
        """Watch another heist; resubscribes only if the id differs."""
        self._heist_id = heist_id
        if self._started and not self._closed:
            self._evaluate()

    def _evaluate(self, force: bool = False) -> None:
        if self._closed:
            return
        heist_id = self._heist_id
        if not force and heist_id == self._inputs:
            return
        self._inputs = heist_id
        self._teardown()

        if not heist_id or not heist_id.strip():
            self._set_state(HeistState(status=WatchStatus.NOT_FOUND))
            return

        self._set_state(HeistState(status=WatchStatus.LOADING))
        self._open(
            lambda generation: self._store.subscribe_to_document(
                COLLECTION_HEISTS,
                heist_id,
                lambda doc: self._on_snapshot(generation, doc),
                lambda exc: self._on_error(generation, exc),
            ),
            self._on_error,
        )

    def _on_snapshot(self, generation: int, doc: StoredDocument) -> None:
        if not self._is_current(generation):
            return
        if not doc.exists:
            self._set_state(HeistState(status=WatchStatus.NOT_FOUND))
            return
        try:
            heist = HeistConverter.from_wire(doc.id, doc.to_dict(), utc_now())
        except Exception as exc:
            self._on_error(generation, exc)
            return
        self._set_state(HeistState(status=WatchStatus.READY, heist=heist))

    def _on_error(self, generation: int, exc: Exception) -> None:
        if not self._is_current(generation):
            return
        logger.error("Heist subscription failed (id=%s): %r", self._heist_id, exc)
        self._set_state(HeistState(status=WatchStatus.ERRORED, error=HeistLoadError()))


def watch_heists(
    store: DocumentStore,
    identity: IdentityContext,
    heist_filter: HeistFilter | str,
    **options,
) -> HeistsWatcher:
    """Create and start a ``HeistsWatcher``. Close it when the view goes away."""
    watcher = HeistsWatcher(store, identity, heist_filter, **options)
    watcher.start()
    return watcher


def watch_heist(store: DocumentStore, heist_id: str) -> HeistWatcher:
    """Create and start a ``HeistWatcher``. Close it when the view goes away."""
    watcher = HeistWatcher(store, heist_id)
    watcher.start()
    return watcher
