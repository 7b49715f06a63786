"""
Tests for password strength scoring and the user manager password policy.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi_users.exceptions import InvalidPasswordException

from timehatch.core.auth.fastapi_users import UserManager
from timehatch.core.auth.password import (
    SUGGESTIONS,
    get_password_strength_label,
    validate_password_strength,
)


class TestPasswordStrength:
    """Test password scoring."""

    def test_strong_password(self):
        """A password meeting every requirement is valid."""
        result = validate_password_strength("Tr0ub4dor&3")
        assert result.is_valid
        assert result.suggestions == []
        assert result.score == 100
        assert result.label == "Strong"

    def test_lowercase_only(self):
        """Each missing requirement produces a suggestion."""
        result = validate_password_strength("abc")
        assert not result.is_valid
        assert result.score == 20
        assert result.label == "Weak"
        assert SUGGESTIONS["min_length"] in result.suggestions
        assert SUGGESTIONS["has_uppercase"] in result.suggestions
        assert SUGGESTIONS["has_lowercase"] not in result.suggestions

    def test_length_bonus(self):
        """Long passwords earn bonus points without becoming valid."""
        result = validate_password_strength("abcdefghijklmnop")
        assert result.score == 60
        assert result.label == "Fair"
        assert not result.is_valid

    def test_requirements_serialize_camel_case(self):
        """The API exposes camelCase keys."""
        data = validate_password_strength("Abcdefgh1").model_dump(by_alias=True)
        assert data["isValid"] is False
        assert data["requirements"]["hasSpecialChar"] is False
        assert data["score"] == 80

    @pytest.mark.parametrize(
        "score,label",
        [(0, "Weak"), (39, "Weak"), (40, "Fair"), (70, "Good"), (90, "Strong")],
    )
    def test_labels(self, score, label):
        assert get_password_strength_label(score) == label


class TestUserManagerPasswordPolicy:
    """Test the password policy applied on registration."""

    @pytest.fixture
    def manager(self):
        return UserManager(AsyncMock())

    async def test_weak_password_rejected(self, manager):
        user = SimpleNamespace(email="jane@example.com")
        with pytest.raises(InvalidPasswordException):
            await manager.validate_password("password", user)

    async def test_password_containing_email_rejected(self, manager):
        user = SimpleNamespace(email="a@b.co")
        with pytest.raises(InvalidPasswordException):
            await manager.validate_password("Xx1!a@b.coXx", user)

    async def test_strong_password_accepted(self, manager):
        user = SimpleNamespace(email="jane@example.com")
        await manager.validate_password("Tr0ub4dor&3", user)
