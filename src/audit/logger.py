"""
Audit Logger

DESIGN DECISION: Every registry mutation and store checkpoint is logged.
This provides:
1. Traceability of balance and item changes
2. A visible warning when a corrupt store was replaced
3. A record of failed logins and rejected operations

The audit logger:
- Is synchronous, like the rest of the core
- Writes structured log lines through structlog
- Keeps a bounded in-memory trail for the presentation layer to show
"""

from collections import deque
from typing import Optional

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for operators)
    2. An in-memory trail (for the current session)
    """

    def __init__(self, max_events: int = 1000):
        """
        Initialize audit logger.

        Args:
            max_events: How many events the in-memory trail keeps.
        """
        self._events: deque[AuditEvent] = deque(maxlen=max_events)
        self._logger = structlog.get_logger("audit")

    def log(self, event: AuditEvent) -> AuditEvent:
        """Log an audit event at its own severity."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._events.append(event)
        return event

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._events))[:limit]

    def log_auth(self, username: str, succeeded: bool, reason: Optional[str] = None) -> None:
        if succeeded:
            self.log(AuditEventBuilder.auth_succeeded(username))
        else:
            self.log(AuditEventBuilder.auth_failed(username, reason or "unknown"))

    def log_store_loaded(self, location: str, backend: str, user_count: int) -> None:
        self.log(AuditEventBuilder.store_loaded(location, backend, user_count))

    def log_store_bootstrapped(self, location: str, reason: str) -> None:
        self.log(AuditEventBuilder.store_bootstrapped(location, reason))

    def log_store_corrupt(
        self,
        location: str,
        error_message: str,
        quarantined_to: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.store_corrupt(location, error_message, quarantined_to))

    def log_store_saved(self, location: str, backend: str, user_count: int) -> None:
        self.log(AuditEventBuilder.store_saved(location, backend, user_count))

    def log_save_failed(self, location: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(location, error_message))
