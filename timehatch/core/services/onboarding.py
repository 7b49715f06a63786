"""
First-run checklist stored on the user's profile.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..logging import get_logger
from ..models.tortoise_models import Profile

logger = get_logger(__name__)

TRACKED_STEPS = (
    "project_created",
    "timer_started",
    "timer_stopped_with_note",
    "expense_added",
    "invoice_draft_created",
)


class OnboardingState(BaseModel):
    project_created: bool = False
    timer_started: bool = False
    timer_stopped_with_note: bool = False
    expense_added: bool = False
    invoice_draft_created: bool = False
    stripe_connected: bool = False
    dismissed: bool = False
    completed_at: Optional[datetime] = None
    tour_done: bool = False

    @property
    def completed_steps(self) -> int:
        return sum(1 for step in TRACKED_STEPS if getattr(self, step))

    @property
    def is_complete(self) -> bool:
        return self.completed_steps == len(TRACKED_STEPS)


class OnboardingUpdates(BaseModel):
    """Partial state sent by the client; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    project_created: Optional[bool] = None
    timer_started: Optional[bool] = None
    timer_stopped_with_note: Optional[bool] = None
    expense_added: Optional[bool] = None
    invoice_draft_created: Optional[bool] = None
    stripe_connected: Optional[bool] = None
    dismissed: Optional[bool] = None
    completed_at: Optional[datetime] = None
    tour_done: Optional[bool] = None

    @field_validator(
        "project_created",
        "timer_started",
        "timer_stopped_with_note",
        "expense_added",
        "invoice_draft_created",
        "stripe_connected",
        "dismissed",
        "tour_done",
    )
    @classmethod
    def reject_null(cls, value: Optional[bool]) -> bool:
        if value is None:
            raise ValueError("must be true or false")
        return value


class OnboardingSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: OnboardingState
    completed_steps: int
    total_steps: int
    is_complete: bool


def _load(profile: Profile) -> OnboardingState:
    # Null flags fall back to their defaults
    stored = profile.onboarding_state or {}
    return OnboardingState.model_validate(
        {key: value for key, value in stored.items() if value is not None}
    )


async def get_state(user_id: UUID) -> OnboardingSummary:
    profile, _ = await Profile.get_or_create(user_id=user_id)
    state = _load(profile)
    return OnboardingSummary(
        state=state,
        completed_steps=state.completed_steps,
        total_steps=len(TRACKED_STEPS),
        is_complete=state.is_complete,
    )


async def update_state(user_id: UUID, updates: Dict[str, Any]) -> OnboardingState:
    """
    Merge updates into the stored state.

    ``completed_at`` is stamped the first time every tracked step is done.

    Raises:
        pydantic.ValidationError: If updates contain unknown keys or bad values
    """
    changes = OnboardingUpdates.model_validate(updates).model_dump(
        exclude_unset=True
    )
    profile, _ = await Profile.get_or_create(user_id=user_id)
    state = OnboardingState.model_validate({**_load(profile).model_dump(), **changes})

    if state.is_complete and state.completed_at is None:
        state.completed_at = datetime.now(timezone.utc)
        logger.info("Onboarding completed", user_id=str(user_id))

    profile.onboarding_state = state.model_dump(mode="json")
    await profile.save(update_fields=["onboarding_state", "updated_at"])
    return state


async def mark_step(user_id: UUID, step: str) -> None:
    """Record a checklist step reached through normal use of the app."""
    if step not in TRACKED_STEPS:
        raise ValueError(f"Unknown onboarding step: {step}")

    profile, _ = await Profile.get_or_create(user_id=user_id)
    if getattr(_load(profile), step):
        return
    await update_state(user_id, {step: True})
