"""Identity context: the current principal and whether auth has resolved.

Constructed once at startup (see ``heists.core.lifespan``), started, passed
to every watcher, and closed at shutdown. Watchers only read it; the
identity provider is the only writer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from heists.application.interfaces.ports import IdentityProvider
from heists.domain.entities.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityState:
    """Snapshot of the identity context."""

    principal: Principal | None
    auth_loading: bool

    @property
    def principal_id(self) -> str | None:
        return self.principal.uid if self.principal else None


IdentityListener = Callable[[IdentityState], None]


class IdentityContext:
    """Holds ``principal`` and ``auth_loading`` fed by one provider subscription.

    State goes from unresolved (``auth_loading=True``) to authenticated or
    anonymous on the provider's first report, and follows sign-in/sign-out
    after that. No retries: the provider reconnects on its own.
    """

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider
        self._state = IdentityState(principal=None, auth_loading=True)
        self._listeners: list[IdentityListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> IdentityState:
        return self._state

    @property
    def principal(self) -> Principal | None:
        return self._state.principal

    @property
    def auth_loading(self) -> bool:
        return self._state.auth_loading

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Open the provider subscription. Idempotent."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._provider.subscribe(self._on_principal)
        logger.debug("Identity context started")

    def close(self) -> None:
        """Close the provider subscription and drop listeners. Idempotent."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.debug("Identity context closed")
        self._listeners.clear()

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener`` for state changes; return a function that removes it.

        The returned function may be called any number of times.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_principal(self, principal: Principal | None) -> None:
        new_state = IdentityState(principal=principal, auth_loading=False)
        if new_state == self._state:
            return
        self._state = new_state
        logger.info(
            "Identity resolved: %s",
            f"uid={principal.uid}" if principal else "anonymous",
        )
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Identity listener failed")
