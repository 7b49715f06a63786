"""
Authentication endpoints beyond the FastAPI Users routers.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from ...core.auth.password import PasswordStrength, validate_password_strength

router = APIRouter(prefix="/auth", tags=["auth"])


class PasswordStrengthRequest(BaseModel):
    password: str


@router.post(
    "/password-strength", response_model=PasswordStrength, response_model_by_alias=True
)
async def password_strength(data: PasswordStrengthRequest) -> PasswordStrength:
    """Score a candidate password (public endpoint)."""
    return validate_password_strength(data.password)
