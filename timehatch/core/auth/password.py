"""
Password strength scoring for TimeHatch.

Scores are used both by the public strength-check endpoint and by the user
manager when accounts are registered or passwords are changed.
"""

import re
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_LENGTH = 8
SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

SUGGESTIONS: Dict[str, str] = {
    "min_length": f"Use at least {MIN_LENGTH} characters",
    "has_uppercase": "Add at least one uppercase letter",
    "has_lowercase": "Add at least one lowercase letter",
    "has_number": "Include at least one number",
    "has_special_char": "Include at least one special character (!@#$%^&*)",
}


class PasswordRequirements(BaseModel):
    """Which individual requirements a password satisfies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_number: bool
    has_special_char: bool


class PasswordStrength(BaseModel):
    """Result of scoring a password."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    score: int = Field(ge=0, le=100)
    label: str
    requirements: PasswordRequirements
    suggestions: List[str]


def get_password_strength_label(score: int) -> str:
    """Map a score to a human readable label."""
    if score < 40:
        return "Weak"
    if score < 70:
        return "Fair"
    if score < 90:
        return "Good"
    return "Strong"


def validate_password_strength(password: str) -> PasswordStrength:
    """
    Score a password against the account requirements.

    Each satisfied requirement adds 20 points, with a bonus of 10 points at
    12 characters and another 10 at 16, capped at 100. A password is valid
    only when every requirement is met.
    """
    requirements = PasswordRequirements(
        min_length=len(password) >= MIN_LENGTH,
        has_uppercase=re.search(r"[A-Z]", password) is not None,
        has_lowercase=re.search(r"[a-z]", password) is not None,
        has_number=re.search(r"\d", password) is not None,
        has_special_char=SPECIAL_CHARACTERS.search(password) is not None,
    )

    met = requirements.model_dump()
    suggestions = [SUGGESTIONS[name] for name, ok in met.items() if not ok]

    score = 20 * sum(met.values())
    if len(password) >= 12:
        score += 10
    if len(password) >= 16:
        score += 10
    score = min(score, 100)

    return PasswordStrength(
        is_valid=all(met.values()),
        score=score,
        label=get_password_strength_label(score),
        requirements=requirements,
        suggestions=suggestions,
    )
