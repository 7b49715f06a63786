"""
Onboarding checklist endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.services import onboarding
from ...core.services.onboarding import OnboardingSummary, OnboardingUpdates

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


class OnboardingPatch(BaseModel):
    updates: OnboardingUpdates


@router.get("", response_model=OnboardingSummary)
async def get_onboarding_state(
    user: User = Depends(current_active_user),
) -> OnboardingSummary:
    return await onboarding.get_state(user.id)


@router.patch("")
async def update_onboarding_state(
    data: OnboardingPatch, user: User = Depends(current_active_user)
) -> Dict[str, Any]:
    """Merge checklist updates. Unknown keys are rejected with 422."""
    state = await onboarding.update_state(
        user.id, data.updates.model_dump(exclude_unset=True)
    )
    return {"success": True, "state": state.model_dump(mode="json")}
