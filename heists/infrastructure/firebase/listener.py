"""Live subscriptions over the Firestore REST API, by polling.

REST has no push channel, so each subscription is an asyncio task that
re-runs its read every ``interval`` seconds and delivers a full snapshot
on the first read and whenever the result differs from the last one
delivered. The first read error is reported once through ``on_error`` and
ends the subscription.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollingSubscription(Generic[T]):
    """A cancellable polling loop bound to one ``(on_snapshot, on_error)`` pair.

    Must be created while an event loop is running. ``close()`` is
    synchronous and idempotent; once it returns no callback runs again.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        on_snapshot: Callable[[T], None],
        on_error: Callable[[Exception], None],
        *,
        interval: float,
        fingerprint: Callable[[T], Any],
        label: str = "",
    ) -> None:
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._interval = interval
        self._fingerprint = fingerprint
        self._label = label
        self._closed = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._task.done():
            self._task.cancel()
        logger.debug("Subscription closed: %s", self._label)

    async def _run(self) -> None:
        last: Any = None
        delivered = False
        while not self._closed:
            try:
                result = await self._fetch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._closed:
                    return
                self._closed = True
                logger.debug("Subscription %s ended on error: %r", self._label, e)
                self._on_error(e)
                return
            if self._closed:
                return
            key = self._fingerprint(result)
            if not delivered or key != last:
                last = key
                delivered = True
                try:
                    self._on_snapshot(result)
                except Exception:
                    logger.exception("Snapshot callback failed: %s", self._label)
            await asyncio.sleep(self._interval)
