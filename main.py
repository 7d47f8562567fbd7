#!/usr/bin/env python3
"""
Shopfront operator CLI.

Usage:
  python main.py create-admin --email admin@example.com --username admin
  python main.py create-admin --email admin@example.com --username admin --password 's3cret!'
  python main.py clear-product-cache

Reads the same settings as the API (environment variables or .env):
  DATABASE_URL, CACHE_DB_PATH, SECRET_KEY / DEBUG
"""

import argparse
import getpass
import sys

from auth.models import User, UserType
from auth.store import UserStore
from auth.tokens import hash_password
from cache.store import CacheStore, NamespaceCache
from catalog.service import PRODUCTS_NAMESPACE
from core.config import get_settings

_MIN_PASSWORD = 6


def create_admin(email: str, username: str, password: str) -> int:
    """Create a verified admin account. Returns 0 on success, 1 on failure.

    Admins can only be created here: self-registration always produces a
    normal_user.
    """
    if len(password) < _MIN_PASSWORD:
        print(f"  [!] Password must be at least {_MIN_PASSWORD} characters.")
        return 1
    store = UserStore(db_url=get_settings().database_url)
    try:
        if store.find_by_email(email) is not None:
            print(f"  [!] A user with email '{email}' already exists.")
            return 1
        user_id = store.create(
            User(
                email=email,
                username=username,
                hashed_password=hash_password(password),
                user_type=UserType.ADMIN,
                is_account_verified=True,
            )
        )
    finally:
        store.close()
    print(f"  Admin '{username}' created (id {user_id}).")
    return 0


def clear_product_cache() -> int:
    """Drop every cached product listing. Returns 0."""
    cache = CacheStore(get_settings().cache_db_path)
    try:
        removed = NamespaceCache(cache, PRODUCTS_NAMESPACE).invalidate_namespace()
    finally:
        cache.close()
    print(f"  Removed {removed} cached product listing(s).")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="shopfront",
        description="Shopfront operator commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --email admin@example.com --username admin
  python main.py clear-product-cache
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    admin = sub.add_parser("create-admin", help="Create a verified admin account")
    admin.add_argument("--email", required=True, help="Login email for the new admin")
    admin.add_argument("--username", required=True, help="Display name")
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted, which keeps it out of shell history)",
    )

    sub.add_parser("clear-product-cache", help="Invalidate every cached product listing")

    args = parser.parse_args()

    if args.command == "create-admin":
        password = args.password or getpass.getpass("Admin password: ")
        sys.exit(create_admin(args.email, args.username, password))
    if args.command == "clear-product-cache":
        sys.exit(clear_product_cache())

    parser.print_help()


if __name__ == "__main__":
    main()
