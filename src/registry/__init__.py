"""User registry package."""

from src.registry.user_registry import (
    ADMIN_USERNAME,
    DEFAULT_ADMIN_PASSWORD,
    UserRegistry,
)

__all__ = ["ADMIN_USERNAME", "DEFAULT_ADMIN_PASSWORD", "UserRegistry"]
