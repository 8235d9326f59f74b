"""
Configuration Management for User Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage format is chosen here, explicitly, never by probing which
kind of file happens to exist at the storage location.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.errors import WeakPasswordError
from src.registry import DEFAULT_ADMIN_PASSWORD
from src.services.storage import StorageBackend
from src.validation import validate_password


class StorageSettings(BaseSettings):
    """Registry storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    backend: StorageBackend = Field(
        default=StorageBackend.JSON,
        description="Storage format: 'sqlite' or 'json'"
    )
    path: Optional[str] = Field(
        default=None,
        description="Default storage location if none is given on the command line"
    )


class BootstrapSettings(BaseSettings):
    """Default account created when no usable store exists."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_BOOTSTRAP_",
        extra="ignore"
    )

    password: str = Field(
        default=DEFAULT_ADMIN_PASSWORD,
        description="Password given to the bootstrap admin account"
    )

    @field_validator("password")
    @classmethod
    def validate_bootstrap_password(cls, v: str) -> str:
        """The bootstrap password must satisfy the same policy as everyone else."""
        try:
            validate_password(v)
        except WeakPasswordError as e:
            raise ValueError(str(e))
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for log output"
    )

    # Console defaults
    allow_overdraft: bool = Field(
        default=False,
        description="Default for decrements: allow the balance to go negative"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def bootstrap(self) -> BootstrapSettings:
        return BootstrapSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus "<name>_error"
    entries for the groups that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "bootstrap", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
