#!/usr/bin/env python3
"""
Provision an admin or employee account with a temporary password.

The password is generated, printed once and must be changed at first login.
Running the script again for the same email changes nothing.

Usage:
    python scripts/create_admin.py
    python scripts/create_admin.py staff@example.com --role employee --department sales
"""

import argparse
import logging
import sys

sys.path.insert(0, ".")

from storefront.config import settings
from storefront.database.collection_store import get_store
from storefront.entities.user import Department
from storefront.services.admin_provisioning import AdminProvisioningService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create an admin or employee account")
    parser.add_argument("email", nargs="?", default=settings.DEFAULT_ADMIN_EMAIL)
    parser.add_argument("--role", "-r", choices=["admin", "employee"], default="admin")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--username")
    parser.add_argument("--department", choices=[d.value for d in Department])
    parser.add_argument("--position")
    parser.add_argument("--phone")
    args = parser.parse_args()

    result = AdminProvisioningService(get_store()).provision(
        email=args.email,
        role=args.role,
        first_name=args.first_name,
        last_name=args.last_name,
        username=args.username,
        department=args.department,
        position=args.position,
        phone=args.phone,
    )

    if not result.created:
        print(f"ℹ️  Account already exists: {result.user.email} ({result.user.role})")
        print("   The existing password was left unchanged.")
        return

    print(f"✅ {args.role.capitalize()} account created")
    print(f"   Email:       {result.user.email}")
    print(f"   Employee ID: {result.user.employee_id}")
    print(f"🔑 Temporary password: {result.temporary_password}")
    print("   Store it now, it will not be shown again. It must be changed at first login.")


if __name__ == "__main__":
    main()
