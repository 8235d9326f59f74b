"""
Operation Models

A presentation layer (console, HTTP handler) never calls the registry
directly. It builds an OperationRequest, hands it to the
OperationExecutor and gets an OperationResult back.

DESIGN DECISION: The set of operations is a closed enum. Menus are
built from it and the executor dispatches on it through a lookup
table, so adding an operation is one enum member plus one handler.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from src.models.errors import ErrorKind


class Operation(str, Enum):
    """Every operation a consumer can request."""
    AUTHENTICATE = "authenticate"
    INCREMENT_BALANCE = "increment_balance"
    DECREMENT_BALANCE = "decrement_balance"
    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"
    REGISTER_USER = "register_user"
    REMOVE_USER = "remove_user"
    RESET_PASSWORD = "reset_password"
    LIST_USERS = "list_users"
    SHOW_USER = "show_user"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def is_mutation(self) -> bool:
        return self not in (
            Operation.AUTHENTICATE,
            Operation.LIST_USERS,
            Operation.SHOW_USER,
        )


# Operations offered to a logged-in user, in menu order
MENU_OPERATIONS = (
    Operation.INCREMENT_BALANCE,
    Operation.DECREMENT_BALANCE,
    Operation.ADD_ITEM,
    Operation.REMOVE_ITEM,
    Operation.LIST_USERS,
    Operation.SHOW_USER,
    Operation.REGISTER_USER,
    Operation.REMOVE_USER,
    Operation.RESET_PASSWORD,
)


class OperationRequest(BaseModel):
    """
    A single requested operation.

    `actor` is the authenticated user issuing the request. `target`
    names another user for register/remove/reset; balance and item
    operations always act on the actor.
    """

    request_id: UUID = Field(
        default_factory=uuid4
    )
    operation: Operation
    actor: str = Field(
        ...,
        description="Username of the authenticated user"
    )
    target: Optional[str] = Field(
        default=None,
        description="Username the operation applies to, if not the actor"
    )

    # Balance operations
    amount: Optional[Decimal] = None
    prevent_overdraw: bool = True

    # Item operations
    item_name: Optional[str] = None
    item_price: Optional[Decimal] = None

    # Register / reset password
    password: Optional[str] = None


class OperationResult(BaseModel):
    """
    Outcome of an operation.

    Failures are values here: `success` is False and `error_kind` says
    which domain rule rejected the request.
    """

    request_id: UUID
    operation: Operation
    executed_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    success: bool
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    message: str = Field(
        default="",
        description="Human-readable summary of what happened"
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation-specific payload (balances, listings)"
    )
