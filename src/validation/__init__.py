"""Registration validation package."""

from src.validation.validator import (
    MIN_PASSWORD_LENGTH,
    PasswordRule,
    PolicyViolation,
    check_password,
    validate_password,
    validate_username,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "PasswordRule",
    "PolicyViolation",
    "check_password",
    "validate_password",
    "validate_username",
]
