"""Sign in and print a live heist list until interrupted.

Usage:
    python -m scripts.watch_heists <email> <password> [active|assigned|expired]

Default filter: active. Reads FIREBASE_* settings from the environment / .env.
"""

import asyncio
import sys

from heists.application.services.display import heist_status_label
from heists.application.use_cases.auth import get_auth_error_message, login_user
from heists.application.watchers import HeistsState
from heists.core.lifespan import create_runtime
from heists.domain.enums import HeistFilter, WatchStatus
from heists.domain.exceptions import AuthenticationException
from heists.shared.telemetry.logging import get_logger, setup_logging
from heists.shared.utils.datetime import utc_now

logger = get_logger(__name__)


def _render(state: HeistsState, policy) -> None:
    if state.status is WatchStatus.ERRORED:
        print(f"! {state.error}", file=sys.stderr)
        return
    if state.status is not WatchStatus.READY:
        print(f"[{state.status.value}]")
        return
    now = utc_now()
    print(f"--- {len(state.heists)} heist(s) ---")
    for heist in state.heists:
        label, value = heist_status_label(heist, now, policy)
        print(
            f"{heist.id}  {heist.title!r}  "
            f"{heist.created_by_codename} -> {heist.assigned_to_codename}  {label}: {value}"
        )


async def main() -> None:
    if len(sys.argv) < 3:
        print(
            "Usage: python -m scripts.watch_heists <email> <password> [active|assigned|expired]",
            file=sys.stderr,
        )
        sys.exit(1)
    email, password = sys.argv[1], sys.argv[2]
    filter_name = sys.argv[3] if len(sys.argv) > 3 else HeistFilter.ACTIVE.value
    if filter_name not in HeistFilter.values():
        print(f"Unknown filter: {filter_name}", file=sys.stderr)
        sys.exit(1)

    setup_logging()
    async with create_runtime() as runtime:
        try:
            codename = await login_user(runtime.auth, email, password)
        except AuthenticationException as e:
            print(get_auth_error_message(e), file=sys.stderr)
            sys.exit(1)
        print(f"Signed in as {codename or email}")

        logger.info("Watching %s heists", filter_name)
        with runtime.watch_heists(filter_name) as watcher:
            watcher.subscribe(lambda state: _render(state, runtime.policy))
            _render(watcher.state, runtime.policy)
            await asyncio.Event().wait()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
