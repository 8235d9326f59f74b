"""
User Registry

The registry is the one in-memory owner of all users for a process run.
It is created by a storage adapter's load(), passed explicitly to every
consumer, and handed back to save() at shutdown.

INVARIANTS:
- At most one User per username (case-sensitive)
- The bootstrap account can never be removed
- Iteration order is insertion order, which storage preserves

Not thread-safe. A concurrent host must serialize access itself.
"""

from decimal import Decimal
from typing import Iterable, Iterator

import structlog

from src.models.errors import (
    AuthFailedError,
    InvalidAmountError,
    InvalidUsernameError,
    NotFoundError,
    ProtectedAccountError,
)
from src.models.user import AmountLike, User, to_amount
from src.validation import validate_password, validate_username

ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "Admin#123"

logger = structlog.get_logger(__name__)


class UserRegistry:
    """Mapping from username to User."""

    def __init__(self, users: Iterable[User] = ()):
        self._users: dict[str, User] = {}
        for user in users:
            self.add(user)

    # -- read accessors ------------------------------------------------------

    def __contains__(self, username: object) -> bool:
        return username in self._users

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self) -> Iterator[User]:
        return iter(list(self._users.values()))

    def users(self) -> list[User]:
        """All users in insertion order."""
        return list(self._users.values())

    def usernames(self) -> list[str]:
        return list(self._users)

    def get(self, username: str) -> User:
        try:
            return self._users[username]
        except KeyError:
            raise NotFoundError(f"Unknown user: {username}")

    # -- mutations -------------------------------------------------------------

    def add(self, user: User) -> User:
        """
        Insert an already-built user (e.g. rebuilt from storage).

        The user's salt and digest are taken as-is.
        """
        if user.username in self._users:
            raise InvalidUsernameError(f"Username already exists: {user.username}")
        self._users[user.username] = user
        return user

    def register(
        self,
        username: str,
        password: str,
        initial_balance: AmountLike = Decimal("0.00"),
    ) -> User:
        """
        Create and add a new user.

        Raises:
            InvalidUsernameError: Empty/whitespace username or already taken
            WeakPasswordError: Password breaks one or more policy rules
            InvalidAmountError: Negative initial balance
        """
        validate_username(username)
        if username in self._users:
            raise InvalidUsernameError(f"Username already exists: {username}")
        validate_password(password)
        balance = to_amount(initial_balance)
        if balance < 0:
            raise InvalidAmountError("Initial balance cannot be negative")

        user = User.create(username, password, balance)
        self._users[username] = user
        logger.info("user_registered", username=username)
        return user

    def remove(self, username: str) -> User:
        """
        Remove a user.

        Raises:
            ProtectedAccountError: Attempt to remove the bootstrap account
            NotFoundError: No such user
        """
        if username == ADMIN_USERNAME:
            raise ProtectedAccountError(f"The {ADMIN_USERNAME} account cannot be removed")
        user = self.get(username)
        del self._users[username]
        logger.info("user_removed", username=username)
        return user

    def reset_password(self, username: str, new_password: str) -> User:
        user = self.get(username)
        validate_password(new_password)
        user.reset_password(new_password)
        return user

    def bootstrap(self, password: str = DEFAULT_ADMIN_PASSWORD) -> User:
        """
        Reset the registry to the single default account.

        Only used when the backing store is missing or unreadable.
        """
        self._users.clear()
        admin = User.create(ADMIN_USERNAME, password)
        self._users[ADMIN_USERNAME] = admin
        logger.warning("registry_bootstrapped", username=ADMIN_USERNAME)
        return admin

    # -- authentication --------------------------------------------------------

    def authenticate(self, username: str, password: str) -> User:
        """
        Look up a user and verify their password.

        Raises:
            NotFoundError: Unknown username
            AuthFailedError: Wrong password
        """
        user = self.get(username)
        if not user.check_password(password):
            raise AuthFailedError("Invalid password")
        return user

    @classmethod
    def bootstrapped(cls, password: str = DEFAULT_ADMIN_PASSWORD) -> "UserRegistry":
        registry = cls()
        registry.bootstrap(password)
        return registry
