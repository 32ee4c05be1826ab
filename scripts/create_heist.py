"""Sign in and create a heist assigned to another agent.

Usage:
    python -m scripts.create_heist <email> <password> <assignee_codename> <title> <description>

Prints the new heist id. The deadline is HEIST_DURATION_HOURS from now.
"""

import asyncio
import sys

from heists.application.use_cases.auth import get_auth_error_message
from heists.application.use_cases.create_heist import submit_heist
from heists.application.use_cases.users import fetch_assignees
from heists.core.lifespan import create_runtime
from heists.domain.exceptions import AuthenticationException
from heists.shared.telemetry.logging import get_logger, setup_logging
from heists.shared.utils.datetime import utc_now

logger = get_logger(__name__)


async def main() -> None:
    if len(sys.argv) < 6:
        print(
            "Usage: python -m scripts.create_heist "
            "<email> <password> <assignee_codename> <title> <description>",
            file=sys.stderr,
        )
        sys.exit(1)
    email, password, assignee_codename, title, description = sys.argv[1:6]

    setup_logging()
    async with create_runtime() as runtime:
        try:
            principal = await runtime.auth.sign_in(email, password)
        except AuthenticationException as e:
            print(get_auth_error_message(e), file=sys.stderr)
            sys.exit(1)

        assignees = await fetch_assignees(runtime.store, principal)
        assignee = next((u for u in assignees if u.codename == assignee_codename), None)
        if assignee is None:
            print(f"No agent with codename {assignee_codename!r}", file=sys.stderr)
            sys.exit(1)

        result = await submit_heist(
            runtime.store,
            {"title": title, "description": description, "assignee_id": assignee.id},
            principal,
            assignees,
            utc_now(),
            duration_hours=runtime.settings.heist_duration_hours,
        )
        if not result.ok:
            logger.warning("Heist not created: %s", result.error)
            print(result.error, file=sys.stderr)
            sys.exit(1)
        print(f"Created heist: {result.heist_id}")


if __name__ == "__main__":
    asyncio.run(main())
