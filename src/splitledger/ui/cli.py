from __future__ import annotations

import argparse
import getpass
import logging
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from splitledger.app import (
    add_expense,
    add_friend,
    add_group_member,
    create_group,
    delete_expense,
    edit_expense,
    friend_balance_view,
    group_balance_view,
    leave_group,
    list_groups,
    migrate_splitwise,
    register_user,
    send_settle_up_reminders,
    splitwise_authorization_url,
)
from splitledger.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track shared expenses and import Splitwise")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level (overrides SPLITLEDGER_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Register an account")
    register.add_argument("--username", type=str, required=True, help="Display name")
    register.add_argument("--email", type=str, required=True, help="Email address")
    register.add_argument(
        "--password",
        type=str,
        help="Password (prompted for when omitted)",
    )

    migrate = subparsers.add_parser("migrate", help="Import a Splitwise ledger")
    migrate.add_argument("--user-id", type=str, required=True, help="Local user to import into")
    credentials = migrate.add_mutually_exclusive_group(required=True)
    credentials.add_argument("--token", type=str, help="Personal Splitwise API token")
    credentials.add_argument("--code", type=str, help="OAuth authorization code")
    migrate.add_argument(
        "--redirect-uri",
        type=str,
        help="Redirect URI used when the authorization code was issued",
    )

    auth_url = subparsers.add_parser("auth-url", help="Print the Splitwise authorization URL")
    auth_url.add_argument("--redirect-uri", type=str, help="Override SPLITWISE_REDIRECT_URI")

    group_balances = subparsers.add_parser("group-balances", help="Show balances of a group")
    group_balances.add_argument("--group-id", type=str, required=True)

    friend_balance = subparsers.add_parser("friend-balance", help="Show balance with a friend")
    friend_balance.add_argument("--user-id", type=str, required=True)
    friend_balance.add_argument("--friend-id", type=str, required=True)

    create_group_cmd = subparsers.add_parser("create-group", help="Create a group")
    create_group_cmd.add_argument("--user-id", type=str, required=True, help="Creating user")
    create_group_cmd.add_argument("--name", type=str, required=True, help="Group name")
    create_group_cmd.add_argument(
        "--member-id",
        dest="member_ids",
        action="append",
        default=[],
        help="Additional member (repeatable)",
    )

    list_groups_cmd = subparsers.add_parser("list-groups", help="List the groups of a user")
    list_groups_cmd.add_argument("--user-id", type=str, required=True)

    add_member_cmd = subparsers.add_parser(
        "add-member", help="Add a member by email, inviting unknown addresses"
    )
    add_member_cmd.add_argument("--group-id", type=str, required=True)
    add_member_cmd.add_argument("--user-id", type=str, required=True, help="Member adding them")
    add_member_cmd.add_argument("--email", type=str, required=True)

    leave_cmd = subparsers.add_parser("leave-group", help="Leave a group")
    leave_cmd.add_argument("--group-id", type=str, required=True)
    leave_cmd.add_argument("--user-id", type=str, required=True)

    add_expense_cmd = subparsers.add_parser("add-expense", help="Record an expense")
    add_expense_cmd.add_argument("--user-id", type=str, required=True, help="Author of the expense")
    add_expense_cmd.add_argument("--description", type=str, required=True)
    add_expense_cmd.add_argument("--amount", type=float, required=True)
    add_expense_cmd.add_argument("--payer-id", type=str, help="Payer (default: the author)")
    add_expense_cmd.add_argument("--group-id", type=str, help="Group (default: no group)")
    add_expense_cmd.add_argument(
        "--split",
        dest="splits",
        action="append",
        default=[],
        metavar="USER_ID=AMOUNT",
        help="Share owed by one debtor (repeatable)",
    )

    edit_expense_cmd = subparsers.add_parser("edit-expense", help="Edit an expense you added")
    edit_expense_cmd.add_argument("--expense-id", type=str, required=True)
    edit_expense_cmd.add_argument("--user-id", type=str, required=True)
    edit_expense_cmd.add_argument("--description", type=str)
    edit_expense_cmd.add_argument("--amount", type=float, help="New amount; splits are rescaled")

    delete_expense_cmd = subparsers.add_parser("delete-expense", help="Delete an expense you added")
    delete_expense_cmd.add_argument("--expense-id", type=str, required=True)
    delete_expense_cmd.add_argument("--user-id", type=str, required=True)

    add_friend_cmd = subparsers.add_parser("add-friend", help="Befriend another account")
    add_friend_cmd.add_argument("--user-id", type=str, required=True)
    add_friend_cmd.add_argument("--friend-id", type=str, required=True)

    settle = subparsers.add_parser("settle-up", help="Send settle-up reminders")
    settle.add_argument(
        "--date",
        type=str,
        help="ISO date (YYYY-MM-DD) to treat as today (default: local today)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _parse_split(value: str) -> tuple[UUID, float]:
    user_id, separator, amount = value.partition("=")
    if not separator:
        raise ValueError(f"Invalid split (expected USER_ID=AMOUNT): {value}")
    try:
        share = float(amount)
    except ValueError as exc:
        raise ValueError(f"Invalid split amount: {value}") from exc
    return _parse_uuid(user_id.strip()), share


def _parse_splits(values: Sequence[str]) -> dict[UUID, float]:
    splits: dict[UUID, float] = {}
    for value in values:
        debtor_id, share = _parse_split(value)
        if debtor_id in splits:
            raise ValueError(f"Duplicate split for {debtor_id}")
        splits[debtor_id] = share
    return splits


def _optional_uuid(value: str | None) -> UUID | None:
    return _parse_uuid(value) if value is not None else None


def _validate(args: argparse.Namespace) -> None:
    for name in ("user_id", "friend_id", "group_id", "payer_id", "expense_id"):
        value = getattr(args, name, None)
        if value is not None:
            _parse_uuid(value)
    for value in getattr(args, "member_ids", []):
        _parse_uuid(value)
    if args.command == "add-expense":
        _parse_splits(args.splits)
    if args.command == "edit-expense" and args.description is None and args.amount is None:
        raise ValueError("edit-expense needs --description or --amount")
    if args.command == "settle-up":
        _parse_date(args.date)
    if args.command == "migrate" and args.redirect_uri and not args.code:
        raise ValueError("--redirect-uri only applies together with --code")


_LEDGER_COMMANDS = frozenset(
    {
        "create-group",
        "list-groups",
        "add-member",
        "leave-group",
        "add-expense",
        "edit-expense",
        "delete-expense",
        "add-friend",
    }
)


def _run_ledger_command(args: argparse.Namespace) -> None:
    user_id = _parse_uuid(args.user_id)
    if args.command == "create-group":
        group = create_group(
            creator_id=user_id,
            name=args.name,
            member_ids=[_parse_uuid(value) for value in args.member_ids],
        )
        log.info("Created group %s (%s)", group.name, group.id)
    elif args.command == "list-groups":
        for group in list_groups(user_id=user_id):
            log.info("%s  %s", group.id, group.name)
    elif args.command == "add-member":
        outcome = add_group_member(
            group_id=_parse_uuid(args.group_id), actor_id=user_id, email=args.email
        )
        log.info("Add member %s: %s", args.email, outcome)
    elif args.command == "leave-group":
        settled = leave_group(group_id=_parse_uuid(args.group_id), user_id=user_id)
        if not settled:
            log.warning("Left with an open balance; kept as a past member")
    elif args.command == "add-expense":
        expense = add_expense(
            added_by_id=user_id,
            description=args.description,
            amount=args.amount,
            splits=_parse_splits(args.splits),
            payer_id=_optional_uuid(args.payer_id),
            group_id=_optional_uuid(args.group_id),
        )
        log.info("Added expense %s (%.2f)", expense.id, expense.amount)
    elif args.command == "edit-expense":
        expense = edit_expense(
            expense_id=_parse_uuid(args.expense_id),
            user_id=user_id,
            description=args.description,
            amount=args.amount,
        )
        log.info("Expense %s now %s (%.2f)", expense.id, expense.description, expense.amount)
    elif args.command == "delete-expense":
        delete_expense(expense_id=_parse_uuid(args.expense_id), user_id=user_id)
    elif args.command == "add-friend":
        if not add_friend(user_id=user_id, friend_id=_parse_uuid(args.friend_id)):
            log.info("Already friends")


def _run(args: argparse.Namespace) -> None:
    if args.command == "register":
        password = args.password or getpass.getpass("Password: ")
        user = register_user(username=args.username, email=args.email, password=password)
        log.info("Registered user %s (%s)", user.id, user.username)
    elif args.command == "migrate":
        result = migrate_splitwise(
            user_id=_parse_uuid(args.user_id),
            access_token=args.token,
            authorization_code=args.code,
            redirect_uri=args.redirect_uri,
        )
        log.info(
            "Migrated Splitwise ledger of %s: groups=%s, expenses=%s, friends=%s",
            result.foreign_user_display_name,
            result.groups_count,
            result.expenses_count,
            result.friends_count,
        )
        if result.incomplete_groups:
            log.warning("Incomplete groups: %s", ", ".join(result.incomplete_groups))
    elif args.command == "auth-url":
        print(splitwise_authorization_url(redirect_uri=args.redirect_uri))  # noqa: T201
    elif args.command == "group-balances":
        balances = group_balance_view(group_id=_parse_uuid(args.group_id))
        for member in balances.group.all_members:
            log.info("%s: %+.2f", member.username, balances.totals.get(member.id, 0.0))
    elif args.command == "friend-balance":
        balance = friend_balance_view(
            user_id=_parse_uuid(args.user_id),
            friend_id=_parse_uuid(args.friend_id),
        )
        log.info("Balance with friend: %+.2f", balance)
    elif args.command in _LEDGER_COMMANDS:
        _run_ledger_command(args)
    elif args.command == "settle-up":
        send_settle_up_reminders(on=_parse_date(args.date))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
    try:
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
