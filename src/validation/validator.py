"""
Registration Validation

DESIGN DECISION: Validation collects every issue instead of stopping at
the first one. A rejected password reports ALL the rules it breaks so
the user can fix them in one go.

Password rules:
- at least 8 characters
- no whitespace
- at least one uppercase letter
- at least one lowercase letter
- at least one character that is not a letter (digit or symbol)

IMPORTANT: Validation NEVER silently fixes input. Usernames are not
stripped or case-folded; "Alice" and "alice" are different users.
"""

from enum import Enum

from pydantic import BaseModel, Field

from src.models.errors import InvalidUsernameError, WeakPasswordError

MIN_PASSWORD_LENGTH = 8


class PasswordRule(str, Enum):
    """Individual password policy rules."""
    MIN_LENGTH = "min_length"
    NO_WHITESPACE = "no_whitespace"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    NON_LETTER = "non_letter"


class PolicyViolation(BaseModel):
    """A single broken password rule."""

    rule: PasswordRule
    message: str = Field(
        ...,
        description="Human-readable description of the violation"
    )


def check_password(password: str) -> list[PolicyViolation]:
    """
    Check a password against every policy rule.

    Returns the list of violations; empty means the password is acceptable.
    """
    violations = []

    if len(password) < MIN_PASSWORD_LENGTH:
        violations.append(PolicyViolation(
            rule=PasswordRule.MIN_LENGTH,
            message=f"must be at least {MIN_PASSWORD_LENGTH} characters long",
        ))

    if any(ch.isspace() for ch in password):
        violations.append(PolicyViolation(
            rule=PasswordRule.NO_WHITESPACE,
            message="must not contain whitespace",
        ))

    if not any(ch.isupper() for ch in password):
        violations.append(PolicyViolation(
            rule=PasswordRule.UPPERCASE,
            message="must contain an uppercase letter",
        ))

    if not any(ch.islower() for ch in password):
        violations.append(PolicyViolation(
            rule=PasswordRule.LOWERCASE,
            message="must contain a lowercase letter",
        ))

    # Whitespace is not a letter, but it is already its own violation
    if not any(not ch.isalpha() and not ch.isspace() for ch in password):
        violations.append(PolicyViolation(
            rule=PasswordRule.NON_LETTER,
            message="must contain a digit or symbol",
        ))

    return violations


def validate_password(password: str) -> None:
    """Raise WeakPasswordError naming every violated rule."""
    violations = check_password(password)
    if violations:
        raise WeakPasswordError(violations)


def validate_username(username: str) -> None:
    """Raise InvalidUsernameError for an empty or whitespace-only username."""
    if not isinstance(username, str) or not username.strip():
        raise InvalidUsernameError("Username cannot be empty")
