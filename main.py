"""Command-line interface for administering user accounts."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence

from accounts.config import load_settings
from accounts.context import AccountContext, create_context
from accounts.errors import AccountsError

logger = logging.getLogger("accounts.main")

MIN_PASSWORD_LENGTH = 12


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User account administration")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the settings file (defaults to ACCOUNTS_CONFIG or config/accounts.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Initialise the accounts database")

    create_parser = subparsers.add_parser("create-user", help="Create a user account")
    create_parser.add_argument("name", help="Display name for the user")
    create_parser.add_argument("username", help="Unique login name")
    create_parser.add_argument("email", help="Unique email address")
    create_parser.add_argument(
        "--password",
        default=None,
        help="Password to set; a random one is generated and printed when omitted",
    )
    create_parser.add_argument(
        "--prompt",
        action="store_true",
        help="Prompt for the password instead of generating one",
    )

    gen_parser = subparsers.add_parser("gen-password", help="Print a random password")
    gen_parser.add_argument("--length", type=_positive_int, default=MIN_PASSWORD_LENGTH)

    group_parser = subparsers.add_parser("add-group", help="Add a user group with explicit tree bounds")
    group_parser.add_argument("title")
    group_parser.add_argument("--lft", type=int, required=True)
    group_parser.add_argument("--rgt", type=int, required=True)
    group_parser.add_argument("--parent", type=int, default=0)

    member_parser = subparsers.add_parser("add-member", help="Add a user to a group")
    member_parser.add_argument("user_id", type=int)
    member_parser.add_argument("group_id", type=int)

    grant_parser = subparsers.add_parser("grant", help="Allow a group to perform an action")
    grant_parser.add_argument("group_id", type=int)
    grant_parser.add_argument("section")
    grant_parser.add_argument("action", help="Action name, or '*' for every action")

    subparsers.add_parser("list-groups", help="Show the group tree")

    check_parser = subparsers.add_parser("check", help="Check a permission for a user")
    check_parser.add_argument("user_id", type=int)
    check_parser.add_argument("permission", help="Permission in 'section.action' form")

    return parser.parse_args(list(argv) if argv is not None else sys.argv[1:])


def _prompt_for_password() -> str:
    for _ in range(3):
        password = getpass("Password: ")
        confirm = getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < MIN_PASSWORD_LENGTH:
            print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def _create_user(context: AccountContext, args: argparse.Namespace) -> int:
    generated = False
    if args.password:
        password = args.password
    elif args.prompt:
        password = _prompt_for_password()
    else:
        password = context.helper().gen_random_password(MIN_PASSWORD_LENGTH)
        generated = True

    try:
        record = context.database.create_user(
            args.name, args.username, args.email, password, hasher=context.hasher
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{record.id}: {record.username} <{record.email}>")
    if generated:
        print(f"Generated password: {password}")
    return 0


def _list_groups(context: AccountContext) -> int:
    for group in context.helper().get_user_groups():
        print(f"{'  ' * group.level}{group.title} (#{group.id})")
    return 0


def _check(context: AccountContext, user_id: int, permission: str) -> int:
    try:
        user = context.user(user_id)
    except AccountsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    allowed = user.authorise(permission)
    print(f"{user.username}: {permission} {'allowed' if allowed else 'denied'}")
    return 0 if allowed else 2


def run(args: argparse.Namespace) -> int:
    settings = load_settings(Path(args.config) if args.config else None)
    context = create_context(settings)
    logger.info("Using accounts database at %s", settings.database_path)

    if args.command == "init-db":
        print("Database initialisation complete.")
        return 0
    if args.command == "create-user":
        return _create_user(context, args)
    if args.command == "gen-password":
        print(context.helper().gen_random_password(args.length))
        return 0
    if args.command == "add-group":
        try:
            group = context.database.add_group(args.title, lft=args.lft, rgt=args.rgt, parent_id=args.parent)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(f"Created group #{group.id}: {group.title}")
        return 0
    if args.command == "add-member":
        try:
            context.database.add_user_to_group(args.user_id, args.group_id)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0
    if args.command == "grant":
        try:
            context.database.add_rule(args.group_id, args.section, args.action)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0
    if args.command == "list-groups":
        return _list_groups(context)
    if args.command == "check":
        return _check(context, args.user_id, args.permission)
    raise SystemExit(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        return run(args)
    except AccountsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
