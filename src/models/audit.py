"""
Audit Models for User Ledger

Every mutation of the registry and every store checkpoint is recorded
as an AuditEvent. This provides:
1. Traceability of balance changes
2. Visibility of failed logins and rejected operations
3. A loud record when a corrupt store is replaced by a fresh one

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    USER_REGISTERED = "user_registered"
    USER_REMOVED = "user_removed"
    PASSWORD_RESET = "password_reset"
    AUTH_SUCCEEDED = "auth_succeeded"
    AUTH_FAILED = "auth_failed"

    # Balance
    BALANCE_INCREMENTED = "balance_incremented"
    BALANCE_DECREMENTED = "balance_decremented"

    # Items
    ITEM_ADDED = "item_added"
    ITEM_REMOVED = "item_removed"

    # Rejections
    OPERATION_REJECTED = "operation_rejected"

    # Persistence
    STORE_LOADED = "store_loaded"
    STORE_BOOTSTRAPPED = "store_bootstrapped"
    STORE_CORRUPT = "store_corrupt"
    STORE_SAVED = "store_saved"
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who the event is about
    username: Optional[str] = Field(
        default=None,
        description="User the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "description": self.description,
            "details": self.details,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_registered("alice")
        event = AuditEventBuilder.store_corrupt("/data/users.json", "bad base64")
    """

    @staticmethod
    def user_registered(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            username=username,
            description=f"User registered: {username}",
        )

    @staticmethod
    def user_removed(username: str, removed_by: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REMOVED,
            username=username,
            description=f"User removed: {username}",
            details={"removed_by": removed_by},
        )

    @staticmethod
    def password_reset(username: str, reset_by: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET,
            username=username,
            description=f"Password reset for {username}",
            details={"reset_by": reset_by},
        )

    @staticmethod
    def auth_succeeded(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_SUCCEEDED,
            username=username,
            description=f"User logged in: {username}",
        )

    @staticmethod
    def auth_failed(username: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Login failed for {username}",
            error_message=reason,
        )

    @staticmethod
    def balance_changed(
        username: str,
        incremented: bool,
        amount: str,
        new_balance: str,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.BALANCE_INCREMENTED
            if incremented
            else AuditEventType.BALANCE_DECREMENTED
        )
        verb = "added to" if incremented else "removed from"
        return AuditEvent(
            event_type=event_type,
            username=username,
            description=f"{amount} {verb} balance of {username}",
            details={
                "amount": amount,
                "new_balance": new_balance,
            },
        )

    @staticmethod
    def item_changed(username: str, added: bool, name: str, price: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_ADDED if added else AuditEventType.ITEM_REMOVED,
            username=username,
            description=f"Item {'added' if added else 'removed'}: {name}",
            details={
                "name": name,
                "price": price,
            },
        )

    @staticmethod
    def operation_rejected(
        username: str,
        operation: str,
        error_kind: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Operation rejected: {operation}",
            details={"operation": operation},
            error_kind=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def store_loaded(location: str, backend: str, user_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            description=f"Loaded {user_count} users from {location}",
            details={
                "location": location,
                "backend": backend,
                "user_count": user_count,
            },
        )

    @staticmethod
    def store_bootstrapped(location: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_BOOTSTRAPPED,
            severity=AuditSeverity.WARNING,
            description=f"Store initialised with the default account: {reason}",
            details={
                "location": location,
                "reason": reason,
            },
        )

    @staticmethod
    def store_corrupt(
        location: str,
        error_message: str,
        quarantined_to: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CORRUPT,
            severity=AuditSeverity.WARNING,
            description=f"Store at {location} could not be read; existing data discarded",
            details={
                "location": location,
                "quarantined_to": quarantined_to,
            },
            error_kind="store_corrupt",
            error_message=error_message,
        )

    @staticmethod
    def store_saved(location: str, backend: str, user_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SAVED,
            description=f"Saved {user_count} users to {location}",
            details={
                "location": location,
                "backend": backend,
                "user_count": user_count,
            },
        )

    @staticmethod
    def save_failed(location: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Failed to save store at {location}",
            details={"location": location},
            error_kind="store_write_error",
            error_message=error_message,
        )
