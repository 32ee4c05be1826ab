"""Use cases: heist creation, assignee listing, sign-up and login."""

from heists.application.use_cases.auth import (
    get_auth_error_message,
    login_user,
    sign_up_user,
    update_display_alias_with_retry,
)
from heists.application.use_cases.create_heist import (
    HeistForm,
    HeistSubmission,
    create_heist,
    prepare_heist,
    submit_heist,
    validate_heist_form,
)
from heists.application.use_cases.users import fetch_assignees, fetch_users

__all__ = [
    "HeistForm",
    "HeistSubmission",
    "create_heist",
    "fetch_assignees",
    "fetch_users",
    "get_auth_error_message",
    "login_user",
    "prepare_heist",
    "sign_up_user",
    "submit_heist",
    "update_display_alias_with_retry",
    "validate_heist_form",
]
