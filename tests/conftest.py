"""Shared fixtures for User Ledger tests."""

from decimal import Decimal

import pytest

from src.config import get_settings
from src.registry import UserRegistry

PASSWORDS = {
    "alice": "Passw0rd!",
    "bob": "Hunter2#Bob",
    "carol": "C0rrect-Horse",
}


def snapshot(registry: UserRegistry) -> list[tuple]:
    """Observable state of a registry, in order."""
    return [
        (
            user.id,
            user.username,
            user.balance,
            [(item.name, item.price) for item in user.items],
        )
        for user in registry
    ]


@pytest.fixture
def registry() -> UserRegistry:
    """Bootstrapped registry plus three users with two items each."""
    reg = UserRegistry.bootstrapped()

    alice = reg.register("alice", PASSWORDS["alice"], Decimal("100.00"))
    alice.add_item("Lamp", Decimal("12.50"))
    alice.add_item("Desk", Decimal("80.00"))

    bob = reg.register("bob", PASSWORDS["bob"], Decimal("0.10"))
    bob.add_item("Mug", Decimal("3.99"))
    bob.add_item("Mug", Decimal("3.99"))

    carol = reg.register("carol", PASSWORDS["carol"])
    carol.add_item("Zebra print", Decimal("0"))
    carol.add_item("Apple", Decimal("1.25"))
    carol.decrement_balance(Decimal("50.00"), prevent_overdraw=False)

    return reg


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
