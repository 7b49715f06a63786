"""
Tortoise ORM user model for TimeHatch authentication.

Field names follow the fastapi-users protocol so the Tortoise adapter can
manage accounts directly.
"""

from uuid import uuid4

from tortoise import fields
from tortoise.models import Model


class User(Model):
    """User model using Tortoise ORM."""

    id = fields.UUIDField(pk=True, default=uuid4)
    email = fields.CharField(max_length=255, unique=True)
    hashed_password = fields.CharField(max_length=255)
    is_active = fields.BooleanField(default=True)
    is_superuser = fields.BooleanField(default=False)
    is_verified = fields.BooleanField(default=False)

    first_name = fields.CharField(max_length=100, null=True)
    last_name = fields.CharField(max_length=100, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Meta class for User model."""

        table = "users"

    def __str__(self) -> str:
        """Return string representation of User."""
        return f"User({self.email})"
