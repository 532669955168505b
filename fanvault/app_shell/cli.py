import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from fanvault.adapters.sqlite.migrator import SQLiteMigrator
from fanvault.app_shell.config import Settings
from fanvault.app_shell.context import ServiceContext
from fanvault.components.platform import UpdateSettingsInput
from fanvault.domain.entities import Identity
from fanvault.domain.errors import FanVaultError
from fanvault.rules.loader import load_rules

logger = logging.getLogger("fanvault.cli")

# The CLI runs with operator authority
OPERATOR = Identity(user_id=UUID(int=0), roles=frozenset({"admin"}))


def get_context(settings: Settings) -> ServiceContext:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)

    rules = load_rules(settings.rules_path)
    settings.ensure_dirs()
    return ServiceContext.create(settings.db_path, str(settings.blob_dir), rules)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"Not a number: {value}") from e


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    settings.ensure_dirs()
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_set_fee(ctx: ServiceContext, args: argparse.Namespace) -> None:
    updated = ctx.platform.update_settings(
        OPERATOR,
        UpdateSettingsInput(
            platform_fee_percentage=args.percentage,
            min_subscription_price=args.min_price,
            max_subscription_price=args.max_price,
        ),
    )
    print(f"Platform fee: {updated.platform_fee_percentage}%")
    print(
        f"Subscription price bounds: {updated.min_subscription_price}"
        f" - {updated.max_subscription_price}"
    )


def handle_earnings(ctx: ServiceContext, args: argparse.Namespace) -> None:
    as_of = datetime.fromisoformat(args.as_of) if args.as_of else None
    summary = ctx.earnings.summarize(OPERATOR, UUID(args.creator_id), as_of)
    print(f"Total:       {summary.total}")
    for tx_type, amount in summary.by_type.items():
        print(f"  {tx_type:<12}{amount}")
    print(f"This month:  {summary.monthly}")
    print(f"Subscribers: {summary.subscriber_count}")


def handle_grant_role(ctx: ServiceContext, args: argparse.Namespace) -> None:
    created = ctx.roles.grant_role(OPERATOR, UUID(args.user_id), args.role)
    if created:
        print(f"Granted '{args.role}' to {args.user_id}.")
    else:
        print(f"{args.user_id} already has '{args.role}'.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fanvault", description="FanVault admin CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    fee_parser = subparsers.add_parser("set-fee", help="Update platform settings")
    fee_parser.add_argument("percentage", type=_decimal, help="Fee percentage (20 means 20%%)")
    fee_parser.add_argument("--min-price", type=_decimal, help="Minimum subscription price")
    fee_parser.add_argument("--max-price", type=_decimal, help="Maximum subscription price")

    earnings_parser = subparsers.add_parser("earnings", help="Show a creator's earnings")
    earnings_parser.add_argument("creator_id", help="Creator profile id")
    earnings_parser.add_argument("--as-of", help="ISO-8601 instant (default: now)")

    role_parser = subparsers.add_parser("grant-role", help="Grant a role to a profile")
    role_parser.add_argument("user_id", help="Profile id")
    role_parser.add_argument("role", choices=["admin", "creator", "fan"])

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    settings = Settings()

    try:
        if args.command == "migrate":
            handle_migrate(settings, args)
            return

        ctx = get_context(settings)
        if args.command == "set-fee":
            handle_set_fee(ctx, args)
        elif args.command == "earnings":
            handle_earnings(ctx, args)
        elif args.command == "grant-role":
            handle_grant_role(ctx, args)
    except FanVaultError as e:
        logger.error("%s: %s", e.code, e.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
