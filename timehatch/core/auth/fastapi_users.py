"""
FastAPI Users configuration for TimeHatch.

This module provides the complete FastAPI Users setup with Tortoise ORM
integration: JWT bearer authentication, the user manager and the current
user dependencies used by every authenticated route.
"""

import uuid
from typing import Any, AsyncGenerator, Optional, Union

from fastapi import Depends, Request
from fastapi_users import (
    BaseUserManager,
    FastAPIUsers,
    InvalidPasswordException,
    UUIDIDMixin,
    schemas,
)
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)
from fastapi_users_tortoise import TortoiseUserDatabase

from ..config import get_config
from ..logging import get_logger
from ..models.tortoise_models import Profile
from .password import validate_password_strength
from .tortoise_models import User

logger = get_logger(__name__)


class UserRead(schemas.BaseUser[uuid.UUID]):
    """Public user representation."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserCreate(schemas.BaseUserCreate):
    """Registration payload."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    """Profile update payload."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    """User manager enforcing password strength and provisioning profiles."""

    def __init__(self, user_db: Any) -> None:
        super().__init__(user_db)
        secret = get_config().security.secret_key
        self.reset_password_token_secret = secret
        self.verification_token_secret = secret

    async def validate_password(
        self, password: str, user: Union[schemas.BaseUserCreate, User]
    ) -> None:
        """Reject passwords that miss any strength requirement."""
        strength = validate_password_strength(password)
        if not strength.is_valid:
            raise InvalidPasswordException(reason="; ".join(strength.suggestions))
        if user.email and user.email.lower() in password.lower():
            raise InvalidPasswordException(reason="Password should not contain e-mail")

    async def on_after_register(
        self, user: User, request: Optional[Request] = None
    ) -> None:
        """Create the profile row for a new account."""
        await Profile.get_or_create(user_id=user.id)
        logger.info("User registered", user_id=str(user.id))


async def get_user_db() -> AsyncGenerator[TortoiseUserDatabase, None]:
    """Get user database instance."""
    yield TortoiseUserDatabase(User)


async def get_user_manager(
    user_db: TortoiseUserDatabase = Depends(get_user_db),
) -> AsyncGenerator[UserManager, None]:
    """Get user manager instance."""
    yield UserManager(user_db)


bearer_transport = BearerTransport(tokenUrl="api/v1/auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    """Build the JWT strategy from configuration."""
    config = get_config()
    return JWTStrategy(
        secret=config.security.secret_key,
        lifetime_seconds=config.security.jwt_lifetime_seconds,
    )


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

current_active_user = fastapi_users.current_user(active=True)
current_superuser = fastapi_users.current_user(active=True, superuser=True)
