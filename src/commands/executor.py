"""
Operation Execution Engine

DESIGN DECISION: The presentation layer never calls registry methods
directly. It builds an OperationRequest and this engine:
1. Looks up the handler for the operation in a fixed table
2. Runs it against the registry
3. Turns any domain failure into a failed OperationResult

Callers therefore handle failures as values. The only exceptions that
escape execute() are bugs.
"""

from decimal import Decimal
from typing import Callable, Optional

from pydantic import ValidationError

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.models.errors import (
    AuthFailedError,
    InvalidAmountError,
    InvalidItemError,
    LedgerError,
    NotFoundError,
)
from src.models.operations import Operation, OperationRequest, OperationResult
from src.models.user import Item, User
from src.registry import ADMIN_USERNAME, UserRegistry

Handler = Callable[[OperationRequest], OperationResult]


def user_summary(user: User, include_items: bool = False) -> dict:
    """Plain-data view of a user. Never includes credential material."""
    summary = {
        "id": str(user.id),
        "username": user.username,
        "balance": str(user.balance),
        "item_count": len(user.items),
    }
    if include_items:
        summary["items"] = [
            {"name": item.name, "price": str(item.price)}
            for item in user.items
        ]
    return summary


class OperationExecutor:
    """
    Executes operation requests against a registry.

    GUARANTEES:
    - Every request gets exactly one OperationResult
    - Domain failures carry their ErrorKind
    - Every successful mutation and every rejection is audited
    """

    def __init__(
        self,
        registry: UserRegistry,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._registry = registry
        self._audit_logger = audit_logger or AuditLogger()
        self._handlers: dict[Operation, Handler] = {
            Operation.AUTHENTICATE: self._authenticate,
            Operation.INCREMENT_BALANCE: self._increment_balance,
            Operation.DECREMENT_BALANCE: self._decrement_balance,
            Operation.ADD_ITEM: self._add_item,
            Operation.REMOVE_ITEM: self._remove_item,
            Operation.REGISTER_USER: self._register_user,
            Operation.REMOVE_USER: self._remove_user,
            Operation.RESET_PASSWORD: self._reset_password,
            Operation.LIST_USERS: self._list_users,
            Operation.SHOW_USER: self._show_user,
        }

    @property
    def registry(self) -> UserRegistry:
        return self._registry

    def execute(self, request: OperationRequest) -> OperationResult:
        """Run a request and report the outcome."""
        handler = self._handlers[request.operation]
        try:
            return handler(request)
        except LedgerError as e:
            if request.operation != Operation.AUTHENTICATE:
                self._audit_logger.log(AuditEventBuilder.operation_rejected(
                    username=request.actor,
                    operation=request.operation.value,
                    error_kind=e.kind.value,
                    error_message=str(e),
                ))
            return OperationResult(
                request_id=request.request_id,
                operation=request.operation,
                success=False,
                error_kind=e.kind,
                error_message=str(e),
                message=f"{request.operation.label} failed: {e}",
            )

    def authenticate(self, username: str, password: str) -> OperationResult:
        return self.execute(OperationRequest(
            operation=Operation.AUTHENTICATE,
            actor=username,
            password=password,
        ))

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _ok(self, request: OperationRequest, message: str, **data) -> OperationResult:
        return OperationResult(
            request_id=request.request_id,
            operation=request.operation,
            success=True,
            message=message,
            data=data,
        )

    def _require_amount(self, request: OperationRequest) -> Decimal:
        if request.amount is None:
            raise InvalidAmountError("Amount is required")
        return request.amount

    def _require_item(self, request: OperationRequest) -> Item:
        if request.item_name is None or request.item_price is None:
            raise InvalidItemError("Item name and price are required")
        try:
            return Item(name=request.item_name, price=request.item_price)
        except ValidationError as e:
            raise InvalidItemError(f"Invalid item: {e.errors()[0]['msg']}")

    def _authenticate(self, request: OperationRequest) -> OperationResult:
        try:
            user = self._registry.authenticate(request.actor, request.password or "")
        except LedgerError as e:
            self._audit_logger.log_auth(request.actor, succeeded=False, reason=e.kind.value)
            raise
        self._audit_logger.log_auth(user.username, succeeded=True)
        return self._ok(request, f"Welcome, {user.username}", **user_summary(user))

    def _increment_balance(self, request: OperationRequest) -> OperationResult:
        user = self._registry.get(request.actor)
        amount = self._require_amount(request)
        balance = user.increment_balance(amount)
        self._audit_logger.log(AuditEventBuilder.balance_changed(
            user.username, True, str(amount), str(balance),
        ))
        return self._ok(
            request,
            f"Added {amount} to balance",
            amount=str(amount),
            balance=str(balance),
        )

    def _decrement_balance(self, request: OperationRequest) -> OperationResult:
        user = self._registry.get(request.actor)
        amount = self._require_amount(request)
        balance = user.decrement_balance(amount, request.prevent_overdraw)
        self._audit_logger.log(AuditEventBuilder.balance_changed(
            user.username, False, str(amount), str(balance),
        ))
        return self._ok(
            request,
            f"Removed {amount} from balance",
            amount=str(amount),
            balance=str(balance),
        )

    def _add_item(self, request: OperationRequest) -> OperationResult:
        user = self._registry.get(request.actor)
        if request.item_name is None or request.item_price is None:
            raise InvalidItemError("Item name and price are required")
        item = user.add_item(request.item_name, request.item_price)
        self._audit_logger.log(AuditEventBuilder.item_changed(
            user.username, True, item.name, str(item.price),
        ))
        return self._ok(request, f"Added item {item.name}", item_count=len(user.items))

    def _remove_item(self, request: OperationRequest) -> OperationResult:
        user = self._registry.get(request.actor)
        item = self._require_item(request)
        # The model treats a missing item as a no-op; consumers get told
        if not user.has_item(item):
            raise NotFoundError(f"{user.username} does not own {item.name} at {item.price}")
        user.remove_item(item)
        self._audit_logger.log(AuditEventBuilder.item_changed(
            user.username, False, item.name, str(item.price),
        ))
        return self._ok(request, f"Removed item {item.name}", item_count=len(user.items))

    def _register_user(self, request: OperationRequest) -> OperationResult:
        user = self._registry.register(
            request.target or "",
            request.password or "",
            request.amount if request.amount is not None else Decimal("0.00"),
        )
        self._audit_logger.log(AuditEventBuilder.user_registered(user.username))
        return self._ok(request, f"Registered {user.username}", **user_summary(user))

    def _remove_user(self, request: OperationRequest) -> OperationResult:
        username = request.target or ""
        self._registry.remove(username)
        self._audit_logger.log(AuditEventBuilder.user_removed(username, request.actor))
        return self._ok(request, f"Removed {username}", username=username)

    def _reset_password(self, request: OperationRequest) -> OperationResult:
        username = request.target or request.actor
        # Only the admin may reset someone else's password
        if username != request.actor and request.actor != ADMIN_USERNAME:
            raise AuthFailedError(f"{request.actor} may not reset the password of {username}")
        self._registry.reset_password(username, request.password or "")
        self._audit_logger.log(AuditEventBuilder.password_reset(username, request.actor))
        return self._ok(request, f"Password reset for {username}", username=username)

    def _list_users(self, request: OperationRequest) -> OperationResult:
        users = [user_summary(user) for user in self._registry]
        return self._ok(request, f"{len(users)} users", users=users)

    def _show_user(self, request: OperationRequest) -> OperationResult:
        user = self._registry.get(request.target or request.actor)
        return self._ok(
            request,
            f"Details for {user.username}",
            **user_summary(user, include_items=True),
        )
