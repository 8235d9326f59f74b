"""
Core Data Models for User Ledger

These models define the in-memory shape of a user account:
1. Item - immutable (name, price) value
2. LedgerAccount - balance plus the overdraft rule
3. User - identity, credential, account and owned items

DESIGN DECISION: Money is always Decimal. Floats never enter the
balance arithmetic; two-decimal display is a presentation concern.
"""

from decimal import Decimal, InvalidOperation
from typing import Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.auth.credentials import (
    DIGEST_SIZE,
    SALT_SIZE,
    compute_digest,
    generate_salt,
    verify,
)
from src.models.errors import (
    BalanceOverdrawError,
    InvalidAmountError,
    InvalidItemError,
)

AmountLike = Union[Decimal, int, str]


def to_amount(value: AmountLike) -> Decimal:
    """
    Coerce an amount to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not the
    binary approximation. NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Not an amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Not an amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be finite: {value!r}")
    return amount


# =============================================================================
# ITEM
# =============================================================================

class Item(BaseModel):
    """
    An owned item.

    Equality is by (name, price). A user may own duplicates.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="Item name"
    )
    price: Decimal = Field(
        ...,
        description="Item price"
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Item name cannot be empty")
        return v

    @field_validator("price")
    @classmethod
    def price_not_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("Item price must be a non-negative amount")
        return v


# =============================================================================
# LEDGER ACCOUNT
# =============================================================================

class LedgerAccount(BaseModel):
    """
    Balance state for a user.

    INVARIANT: the balance only goes negative through a decrement with
    prevent_overdraw=False.
    """

    balance: Decimal = Field(
        default=Decimal("0.00"),
        description="Current balance"
    )

    def increment(self, amount: AmountLike) -> Decimal:
        """Add a non-negative amount. Returns the new balance."""
        amount = to_amount(amount)
        if amount < 0:
            raise InvalidAmountError("Amount must be positive")
        self.balance += amount
        return self.balance

    def decrement(self, amount: AmountLike, prevent_overdraw: bool = True) -> Decimal:
        """
        Subtract a non-negative amount. Returns the new balance.

        Raises BalanceOverdrawError (balance unchanged) when
        prevent_overdraw is set and the amount exceeds the balance.
        """
        amount = to_amount(amount)
        if amount < 0:
            raise InvalidAmountError("Amount must be positive")
        if prevent_overdraw and amount > self.balance:
            raise BalanceOverdrawError()
        self.balance -= amount
        return self.balance


# =============================================================================
# USER
# =============================================================================

class User(BaseModel):
    """
    A user account.

    Created either by User.create (fresh id, salt and digest) or rebuilt
    by a storage adapter from stored fields, in which case the stored
    salt and digest are reused verbatim.
    """

    id: UUID = Field(
        default_factory=uuid4,
        frozen=True,
        description="Unique user ID, never reassigned"
    )
    username: str = Field(
        ...,
        frozen=True,
        description="Case-sensitive unique username"
    )
    salt: bytes = Field(
        ...,
        frozen=True,
        min_length=SALT_SIZE,
        max_length=SALT_SIZE,
        description="Per-user random salt"
    )
    password_digest: bytes = Field(
        ...,
        min_length=DIGEST_SIZE,
        max_length=DIGEST_SIZE,
        description="Salted password digest"
    )
    account: LedgerAccount = Field(
        default_factory=LedgerAccount
    )
    items: list[Item] = Field(
        default_factory=list,
        description="Owned items in insertion order"
    )

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username cannot be empty")
        return v

    @classmethod
    def create(
        cls,
        username: str,
        password: str,
        balance: AmountLike = Decimal("0.00"),
    ) -> "User":
        """Create a brand new user with a fresh salt and digest."""
        salt = generate_salt()
        return cls(
            username=username,
            salt=salt,
            password_digest=compute_digest(salt, password),
            account=LedgerAccount(balance=to_amount(balance)),
        )

    @property
    def balance(self) -> Decimal:
        return self.account.balance

    # -- credentials ---------------------------------------------------------

    def check_password(self, candidate: str) -> bool:
        return verify(self, candidate)

    def reset_password(self, new_password: str) -> None:
        """Replace the digest. The salt is kept."""
        self.password_digest = compute_digest(self.salt, new_password)

    # -- balance ---------------------------------------------------------------

    def increment_balance(self, amount: AmountLike) -> Decimal:
        return self.account.increment(amount)

    def decrement_balance(self, amount: AmountLike, prevent_overdraw: bool = True) -> Decimal:
        return self.account.decrement(amount, prevent_overdraw)

    # -- items -----------------------------------------------------------------

    def add_item(self, name: str, price: AmountLike) -> Item:
        """Append a new item. Raises InvalidItemError on a blank name or negative price."""
        if not isinstance(name, str) or not name.strip():
            raise InvalidItemError("Item name cannot be empty")
        try:
            price = to_amount(price)
        except InvalidAmountError as e:
            raise InvalidItemError(str(e))
        if price < 0:
            raise InvalidItemError("Item price cannot be negative")
        item = Item(name=name, price=price)
        self.items.append(item)
        return item

    def remove_item(self, item: Item) -> None:
        """
        Remove the first item equal to `item`.

        Removing an item the user doesn't own is a no-op. Callers that
        need to report that should check has_item first.
        """
        try:
            self.items.remove(item)
        except ValueError:
            pass

    def has_item(self, item: Item) -> bool:
        return item in self.items
