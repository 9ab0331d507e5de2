#!/usr/bin/env python3
"""
List all users with their roles.

Usage:
    python scripts/list_users.py
    python scripts/list_users.py --search smith
    python scripts/list_users.py --role employee
"""

import argparse
import sys

sys.path.insert(0, ".")

from storefront.database.collection_store import get_store
from storefront.repositories.user import UserRepository

ROLE_BADGES = {"admin": "👑 ADMIN", "employee": "🧰 STAFF", "customer": "👤 User"}


def main():
    parser = argparse.ArgumentParser(description="List storefront users")
    parser.add_argument("--search", "-s", help="Filter by email, username or name")
    parser.add_argument("--role", "-r", choices=sorted(ROLE_BADGES), help="Only list users with this role")
    args = parser.parse_args()

    users = UserRepository(get_store()).list_all(search=args.search, role=args.role)

    print(f"\n📋 Users ({len(users)}):")
    print("-" * 60)
    for user in users:
        badge = ROLE_BADGES.get(user.role, user.role)
        status = "" if user.is_active else " (inactive)"
        print(f"  {badge} | {user.email} | {user.full_name or 'N/A'}{status}")
    print("-" * 60)


if __name__ == "__main__":
    main()
