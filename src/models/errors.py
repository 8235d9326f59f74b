"""
Domain Error Taxonomy

Every failure the core can report is a LedgerError subclass that carries
an ErrorKind. The kind is what the command layer and any presentation
layer switch on; the message is for humans.

DESIGN DECISION: Failures are raised where they are detected and
converted to explicit OperationResult values at the command boundary.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""
    INVALID_AMOUNT = "invalid_amount"
    INVALID_ITEM = "invalid_item"
    INVALID_USERNAME = "invalid_username"
    WEAK_PASSWORD = "weak_password"
    NOT_FOUND = "not_found"
    PROTECTED_ACCOUNT = "protected_account"
    AUTH_FAILED = "auth_failed"
    BALANCE_OVERDRAW = "balance_overdraw"
    STORE_MISSING = "store_missing"
    STORE_CORRUPT = "store_corrupt"
    STORE_WRITE_ERROR = "store_write_error"


class LedgerError(Exception):
    """Base exception for all domain failures."""

    kind: ErrorKind

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def default_message(self) -> str:
        return self.kind.value.replace("_", " ").capitalize()


class InvalidAmountError(LedgerError):
    """Negative (or non-finite) amount or initial balance."""
    kind = ErrorKind.INVALID_AMOUNT


class InvalidItemError(LedgerError):
    """Item with an empty name or negative price."""
    kind = ErrorKind.INVALID_ITEM


class InvalidUsernameError(LedgerError):
    """Username empty, whitespace-only or already taken."""
    kind = ErrorKind.INVALID_USERNAME


class WeakPasswordError(LedgerError):
    """
    Password violates one or more policy rules.

    `violations` holds the PolicyViolation models from the validator,
    one per broken rule.
    """
    kind = ErrorKind.WEAK_PASSWORD

    def __init__(self, violations: list, message: Optional[str] = None):
        self.violations = list(violations)
        if message is None:
            message = "Weak password: " + "; ".join(v.message for v in self.violations)
        super().__init__(message)

    @property
    def rules(self) -> list:
        return [v.rule for v in self.violations]


class NotFoundError(LedgerError):
    """Unknown username or, where checked, unknown item."""
    kind = ErrorKind.NOT_FOUND


class ProtectedAccountError(LedgerError):
    """Attempt to remove the bootstrap account."""
    kind = ErrorKind.PROTECTED_ACCOUNT


class AuthFailedError(LedgerError):
    """Password did not match the stored digest."""
    kind = ErrorKind.AUTH_FAILED


class BalanceOverdrawError(LedgerError):
    """Decrement larger than the balance while overdraft protection is on."""
    kind = ErrorKind.BALANCE_OVERDRAW

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Amount must be less than or equal to the account balance "
            "when prevent_overdraw is set"
        )
