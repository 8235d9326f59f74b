"""
Console Frontend for User Ledger

A thin text menu over the OperationExecutor. It only:
1. Reads the storage location from the command line
2. Logs a user in
3. Turns menu choices into OperationRequests and prints the results
4. Saves on quit and on Ctrl+C

All rules live in the core; nothing here decides whether an operation
is allowed.
"""

import argparse
import getpass
import logging
import signal
import sys
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from src.config import get_settings
from src.models.operations import (
    MENU_OPERATIONS,
    Operation,
    OperationRequest,
    OperationResult,
)
from src.orchestrator import create_app_components
from src.services.storage import StorageBackend


def ask(prompt: str) -> str:
    return input(f"{prompt}: ").strip()


def ask_amount(prompt: str) -> Optional[Decimal]:
    raw = ask(prompt)
    try:
        value = Decimal(raw)
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        print(f"  Not a number: {raw!r}")
        return None
    return value


def ask_yes_no(prompt: str, default: bool) -> bool:
    hint = "Y/n" if default else "y/N"
    raw = ask(f"{prompt} [{hint}]").lower()
    return default if not raw else raw.startswith("y")


# Each builder collects the fields its operation needs.
# Returning None means the input was unusable and nothing is sent.
RequestFields = Callable[[], Optional[dict]]


def _item_fields() -> Optional[dict]:
    name = ask("Item name")
    price = ask_amount("Item price")
    return None if price is None else {"item_name": name, "item_price": price}


def _register_fields() -> Optional[dict]:
    target = ask("New username")
    password = getpass.getpass("New password: ")
    balance = ask_amount("Initial balance")
    if balance is None:
        return None
    return {"target": target, "password": password, "amount": balance}


def _target_fields() -> Optional[dict]:
    return {"target": ask("Username")}


def _reset_fields() -> Optional[dict]:
    target = ask("Username (blank for yourself)") or None
    return {"target": target, "password": getpass.getpass("New password: ")}


def _show_fields() -> Optional[dict]:
    return {"target": ask("Username (blank for yourself)") or None}


def build_prompt_table(allow_overdraft: bool) -> dict[Operation, RequestFields]:
    def increment() -> Optional[dict]:
        amount = ask_amount("Amount to add")
        return None if amount is None else {"amount": amount}

    def decrement() -> Optional[dict]:
        amount = ask_amount("Amount to remove")
        if amount is None:
            return None
        overdraft = ask_yes_no("Allow overdraft?", allow_overdraft)
        return {"amount": amount, "prevent_overdraw": not overdraft}

    return {
        Operation.INCREMENT_BALANCE: increment,
        Operation.DECREMENT_BALANCE: decrement,
        Operation.ADD_ITEM: _item_fields,
        Operation.REMOVE_ITEM: _item_fields,
        Operation.LIST_USERS: dict,
        Operation.SHOW_USER: _show_fields,
        Operation.REGISTER_USER: _register_fields,
        Operation.REMOVE_USER: _target_fields,
        Operation.RESET_PASSWORD: _reset_fields,
    }


def print_result(result: OperationResult) -> None:
    if not result.success:
        print(f"  ✗ {result.error_message} [{result.error_kind.value}]")
        return
    print(f"  ✓ {result.message}")
    if result.operation == Operation.LIST_USERS:
        for user in result.data["users"]:
            print(f"    {user['username']:<20} {Decimal(user['balance']):>12.2f}  items: {user['item_count']}")
    elif result.operation == Operation.SHOW_USER:
        print(f"    id:      {result.data['id']}")
        print(f"    balance: {Decimal(result.data['balance']):.2f}")
        for item in result.data["items"]:
            print(f"    - {item['name']} ({Decimal(item['price']):.2f})")
    elif "balance" in result.data:
        print(f"    balance now {Decimal(result.data['balance']):.2f}")


def login(executor) -> str:
    while True:
        username = ask("login (username)")
        result = executor.authenticate(username, getpass.getpass("password: "))
        if result.success:
            print(f"  {result.message}")
            return username
        print(f"  ✗ {result.error_message}")


def run_menu(executor, actor: str, allow_overdraft: bool) -> None:
    prompts = build_prompt_table(allow_overdraft)
    while actor in executor.registry:
        print()
        for number, operation in enumerate(MENU_OPERATIONS, start=1):
            print(f"  {number}. {operation.label}")
        print("  0. Quit")
        choice = ask("What do you want to do?")
        if choice == "0":
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(MENU_OPERATIONS):
            print("  Invalid selection")
            continue

        operation = MENU_OPERATIONS[int(choice) - 1]
        fields = prompts[operation]()
        if fields is None:
            continue
        print_result(executor.execute(
            OperationRequest(operation=operation, actor=actor, **fields)
        ))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User ledger console")
    parser.add_argument("path", nargs="?", help="Storage location (file path)")
    parser.add_argument(
        "--backend",
        choices=[b.value for b in StorageBackend],
        default=None,
        help="Storage format (defaults to LEDGER_STORAGE_BACKEND)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.app.effective_log_level, format="%(message)s")

    try:
        store_flow, registry, executor = create_app_components(args.path, args.backend)
    except ValueError as e:
        print(f"usage error: {e}", file=sys.stderr)
        return 2

    def save_and_exit(signum, frame):
        print()
        store_flow.save(registry)
        sys.exit(130)

    signal.signal(signal.SIGINT, save_and_exit)

    actor = login(executor)
    run_menu(executor, actor, settings.app.allow_overdraft)

    if not store_flow.save(registry):
        print("  ✗ Could not save; changes from this session are lost", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
