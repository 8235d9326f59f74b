"""
Data Models Package

This package contains all Pydantic models used in the User Ledger system,
plus the domain error taxonomy they raise.
"""

from src.models.errors import (
    AuthFailedError,
    BalanceOverdrawError,
    ErrorKind,
    InvalidAmountError,
    InvalidItemError,
    InvalidUsernameError,
    LedgerError,
    NotFoundError,
    ProtectedAccountError,
    WeakPasswordError,
)
from src.models.user import (
    Item,
    LedgerAccount,
    User,
    to_amount,
)
from src.models.operations import (
    MENU_OPERATIONS,
    Operation,
    OperationRequest,
    OperationResult,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Errors
    "AuthFailedError",
    "BalanceOverdrawError",
    "ErrorKind",
    "InvalidAmountError",
    "InvalidItemError",
    "InvalidUsernameError",
    "LedgerError",
    "NotFoundError",
    "ProtectedAccountError",
    "WeakPasswordError",
    # User models
    "Item",
    "LedgerAccount",
    "User",
    "to_amount",
    # Operation models
    "MENU_OPERATIONS",
    "Operation",
    "OperationRequest",
    "OperationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
