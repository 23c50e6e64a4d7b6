import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path

from storedesk.components.session import ReauthenticationRequired
from storedesk.config import ClientSettings, load_settings
from storedesk.context import ClientContext
from storedesk.shell.http.errors import ApiError, ConfigurationError, user_message

logger = logging.getLogger("cli")


def get_settings(args: argparse.Namespace) -> ClientSettings:
    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.api_url:
        settings = settings.model_copy(update={"api_url": args.api_url})
    return settings


async def handle_login(ctx: ClientContext, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    user = await ctx.session.login(args.email, password, role=args.role)
    print(f"Logged in as {user.email} ({user.role})")
    return 0


async def handle_logout(ctx: ClientContext, args: argparse.Namespace) -> int:
    ctx.session.logout()
    print("Logged out.")
    return 0


async def handle_whoami(ctx: ClientContext, args: argparse.Namespace) -> int:
    user = ctx.session.current_user
    if not ctx.session.authenticated or user is None:
        print("Not logged in.")
        return 1
    print(f"{user.full_name or user.username} <{user.email}> role={user.role}")
    return 0


async def handle_refresh(ctx: ClientContext, args: argparse.Namespace) -> int:
    try:
        await ctx.session.refresh_token()
    except ReauthenticationRequired as e:
        logger.error(f"Session ended, log in again: {e}")
        return 1
    print("Token refreshed.")
    return 0


async def handle_customers(ctx: ClientContext, args: argparse.Namespace) -> int:
    store = ctx.customers
    customers = await store.fetch_customers(page=args.page, search=args.search or "")
    if store.error:
        logger.error(store.error)
        return 1

    for customer in customers:
        print(f"{customer.id}  {customer.full_name or '-':<24} {customer.email:<32} {customer.status}")
    pg = store.pagination
    print(f"Page {pg.current_page}/{pg.total_pages} ({pg.total_items} customers)")
    return 0


HANDLERS = {
    "login": handle_login,
    "logout": handle_logout,
    "whoami": handle_whoami,
    "refresh": handle_refresh,
    "customers": handle_customers,
}


async def run(settings: ClientSettings, args: argparse.Namespace) -> int:
    ctx = ClientContext.create(settings)
    try:
        await ctx.session.bootstrap()
        return await HANDLERS[args.command](ctx, args)
    except ConfigurationError as e:
        logger.error(f"{e}; set STOREDESK_API_URL or pass --api-url")
        return 1
    except ApiError as e:
        logger.error(user_message(e, f"{args.command} failed"))
        return 1
    finally:
        await ctx.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storedesk dashboard client")
    parser.add_argument("--config", help="Path to a YAML settings file")
    parser.add_argument("--api-url", help="API base URL (overrides settings)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # login
    login_parser = subparsers.add_parser("login", help="Log in and store the token")
    login_parser.add_argument("email")
    login_parser.add_argument("--password", help="Password (prompted when omitted)")
    login_parser.add_argument(
        "--role", choices=["customer", "staff", "admin", "manager"], help="Account role"
    )

    subparsers.add_parser("logout", help="Forget the stored token")
    subparsers.add_parser("whoami", help="Show the current user")
    subparsers.add_parser("refresh", help="Rotate the stored token")

    # customers
    customers_parser = subparsers.add_parser("customers", help="List customers")
    customers_parser.add_argument("--page", type=int, default=1)
    customers_parser.add_argument("--search", help="Search term")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings(args)
    logging.basicConfig(level=settings.log_level.upper())
    return asyncio.run(run(settings, args))


if __name__ == "__main__":
    sys.exit(main())
