"""
Test cases for the onboarding checklist.
"""

import pydantic
import pytest

from timehatch.core.models.tortoise_models import Profile
from timehatch.core.services.onboarding import (
    TRACKED_STEPS,
    OnboardingState,
    get_state,
    mark_step,
    update_state,
)


class TestOnboardingState:
    """Test progress computed from the state."""

    def test_empty_state(self):
        state = OnboardingState()
        assert state.completed_steps == 0
        assert not state.is_complete

    def test_untracked_flags_do_not_count(self):
        state = OnboardingState(stripe_connected=True, tour_done=True, dismissed=True)
        assert state.completed_steps == 0

    def test_all_tracked_steps(self):
        state = OnboardingState(**{step: True for step in TRACKED_STEPS})
        assert state.is_complete


class TestOnboardingService:
    """Test persisting the checklist on the profile."""

    async def test_initial_state(self, user):
        summary = await get_state(user.id)

        assert summary.completed_steps == 0
        assert summary.total_steps == 5
        assert not summary.is_complete
        assert await Profile.filter(user_id=user.id).exists()

    async def test_summary_serializes_camel_case(self, user):
        data = (await get_state(user.id)).model_dump(by_alias=True)
        assert {"state", "completedSteps", "totalSteps", "isComplete"} <= set(data)

    async def test_partial_update_merges(self, user):
        await update_state(user.id, {"project_created": True})
        state = await update_state(user.id, {"tour_done": True})

        assert state.project_created
        assert state.tour_done
        summary = await get_state(user.id)
        assert summary.completed_steps == 1

    async def test_unknown_key_rejected(self, user):
        with pytest.raises(pydantic.ValidationError):
            await update_state(user.id, {"is_admin": True})

    async def test_null_flag_rejected(self, user):
        with pytest.raises(pydantic.ValidationError):
            await update_state(user.id, {"dismissed": None})

        assert not (await get_state(user.id)).state.dismissed

    async def test_null_completion_clears_stamp(self, user):
        state = await update_state(user.id, {"completed_at": None})
        assert state.completed_at is None

    async def test_stored_nulls_fall_back_to_defaults(self, user):
        await Profile.create(
            user=user, onboarding_state={"dismissed": None, "timer_started": True}
        )

        summary = await get_state(user.id)
        assert summary.state.dismissed is False
        assert summary.completed_steps == 1

        await mark_step(user.id, "project_created")
        assert (await get_state(user.id)).completed_steps == 2

    async def test_completion_is_stamped_once(self, user):
        state = await update_state(user.id, {step: True for step in TRACKED_STEPS})
        assert state.completed_at is not None

        again = await update_state(user.id, {"tour_done": True})
        assert again.completed_at == state.completed_at

    async def test_mark_step(self, user):
        await mark_step(user.id, "timer_started")

        summary = await get_state(user.id)
        assert summary.state.timer_started

    async def test_mark_step_is_idempotent(self, user):
        await mark_step(user.id, "timer_started")
        await mark_step(user.id, "timer_started")

        assert (await get_state(user.id)).completed_steps == 1

    async def test_mark_unknown_step(self, user):
        with pytest.raises(ValueError):
            await mark_step(user.id, "tour_done")

    async def test_stored_as_json(self, user):
        await update_state(user.id, {"expense_added": True})

        profile = await Profile.get(user_id=user.id)
        assert profile.onboarding_state["expense_added"] is True
