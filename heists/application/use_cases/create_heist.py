"""Create a heist: form validation, record preparation and the store write.

``create_heist`` is the write path proper: it performs one store call and
lets any store error reach its caller unchanged. ``submit_heist`` is the
form-submit flow built on top of it; it validates first (so invalid input
never reaches the store) and turns failures into messages.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from heists.application.interfaces.ports import DocumentStore
from heists.core.constants import (
    COLLECTION_HEISTS,
    CREATE_HEIST_ERROR_MESSAGE,
    HEIST_DESCRIPTION_MAX_LENGTH,
    HEIST_DURATION_HOURS,
    HEIST_TITLE_MAX_LENGTH,
)
from heists.domain.entities.heist import HeistConverter, NewHeist
from heists.domain.entities.principal import Principal, UserProfile
from heists.domain.exceptions import (
    AuthenticationException,
    SelfAssignmentException,
    ValidationException,
)
from heists.shared.telemetry.tracing import add_span_event, traced
from heists.shared.utils.datetime import hours_after

logger = logging.getLogger(__name__)


class HeistForm(BaseModel):
    """Create-heist form input. Title and description are stripped before length checks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=HEIST_TITLE_MAX_LENGTH)
    description: str = Field(..., min_length=1, max_length=HEIST_DESCRIPTION_MAX_LENGTH)
    assignee_id: str = Field(..., min_length=1)


@dataclass(frozen=True)
class HeistSubmission:
    """Outcome of ``submit_heist``: exactly one of ``heist_id`` / ``error`` is set."""

    heist_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.heist_id is not None


def validate_heist_form(data: dict[str, Any] | HeistForm) -> HeistForm:
    """Validate raw form data. Raises ValidationException naming the first bad field."""
    if isinstance(data, HeistForm):
        return data
    try:
        return HeistForm.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise ValidationException(
            "Please fill in all required fields"
            if first["type"] in ("missing", "string_too_short")
            else f"{field}: {first['msg']}",
            field=field,
        ) from None


def prepare_heist(
    form: HeistForm,
    creator: Principal | None,
    assignees: Iterable[UserProfile],
    now: datetime,
    duration_hours: int = HEIST_DURATION_HOURS,
) -> NewHeist:
    """Resolve the assignee and fix the deadline at ``now + duration_hours``.

    Raises:
        AuthenticationException: No creator, or the creator has no codename yet.
        SelfAssignmentException: The assignee is the creator.
        ValidationException: The assignee is not among ``assignees``.
    """
    if creator is None or not creator.display_name:
        raise AuthenticationException(
            "You must be logged in to create a heist", code="auth/no-current-user"
        )
    if form.assignee_id == creator.uid:
        raise SelfAssignmentException(creator.uid)
    assignee = next((u for u in assignees if u.id == form.assignee_id), None)
    if assignee is None:
        raise ValidationException("Selected user not found", field="assignee_id")

    return NewHeist(
        title=form.title,
        description=form.description,
        created_by=creator.uid,
        created_by_codename=creator.display_name,
        assigned_to=assignee.id,
        assigned_to_codename=assignee.codename,
        deadline=hours_after(now, duration_hours),
    )


@traced("heists.create_heist")
async def create_heist(store: DocumentStore, fields: NewHeist) -> str:
    """Persist a new heist and return its store-assigned id.

    ``finalStatus`` starts as None and ``createdAt`` is filled by the store.
    Store errors propagate unmodified; no retry.
    """
    heist_id = await store.create_document(COLLECTION_HEISTS, HeistConverter.to_wire(fields))
    add_span_event("heist.created", {"heist_id": heist_id})
    logger.info(
        "Heist created id=%s by=%s for=%s", heist_id, fields.created_by, fields.assigned_to
    )
    return heist_id


async def submit_heist(
    store: DocumentStore,
    form_data: dict[str, Any] | HeistForm,
    creator: Principal | None,
    assignees: Iterable[UserProfile],
    now: datetime,
    duration_hours: int = HEIST_DURATION_HOURS,
) -> HeistSubmission:
    """Validate, prepare and create a heist as the create form does.

    Validation and auth problems come back with their own message; a store
    failure comes back as the generic retry message and is logged.
    """
    try:
        form = validate_heist_form(form_data)
        fields = prepare_heist(form, creator, assignees, now, duration_hours)
    except (ValidationException, AuthenticationException) as e:
        return HeistSubmission(error=e.message)

    try:
        heist_id = await create_heist(store, fields)
    except Exception:
        logger.exception("Error creating heist")
        return HeistSubmission(error=CREATE_HEIST_ERROR_MESSAGE)
    return HeistSubmission(heist_id=heist_id)
