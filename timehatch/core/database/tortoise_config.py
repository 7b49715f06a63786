"""
Tortoise ORM configuration for TimeHatch.

Simple, single-file configuration for all database operations.
"""

from typing import Any, Dict, List

from tortoise import Tortoise

from ..config import get_config
from ..logging import get_logger

logger = get_logger(__name__)

MODEL_MODULES: List[str] = [
    "timehatch.core.models.tortoise_models",
    "timehatch.core.auth.tortoise_models",
]


def get_database_url() -> str:
    """Get database connection URL from configuration."""
    return get_config().database.url


def build_tortoise_config(db_url: str) -> Dict[str, Any]:
    """Build the Tortoise config dict for a connection URL."""
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": [*MODEL_MODULES, "aerich.models"],
                "default_connection": "default",
            },
        },
        "use_tz": True,
        "timezone": "UTC",
    }


# Read by aerich (see [tool.aerich] in pyproject.toml)
TORTOISE_ORM = build_tortoise_config(get_database_url())


async def init_tortoise() -> None:
    """Initialize Tortoise ORM."""
    config = get_config()
    await Tortoise.init(config=build_tortoise_config(config.database.url))
    if config.database.generate_schemas:
        await Tortoise.generate_schemas(safe=True)
    logger.info("Tortoise ORM initialized")


async def close_tortoise() -> None:
    """Close Tortoise ORM connections."""
    await Tortoise.close_connections()
    logger.info("Tortoise ORM connections closed")
