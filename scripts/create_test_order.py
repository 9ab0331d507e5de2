#!/usr/bin/env python3
"""
Create one pending test order for an existing customer.

Usage:
    python scripts/create_test_order.py
    python scripts/create_test_order.py --email customer@example.com
"""

import argparse
import logging
import sys

sys.path.insert(0, ".")

from storefront.config import settings
from storefront.database.collection_store import get_store
from storefront.services.exceptions import MissingDependencyError
from storefront.services.order_seeding import OrderSeedingService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create a single test order")
    parser.add_argument(
        "--email",
        "-e",
        default=settings.SEED_CUSTOMER_EMAIL,
        help="Email of the customer who places the order",
    )
    parser.add_argument("--order-number", default="TEST-ORD-001")
    args = parser.parse_args()

    print(f"🔍 Looking up customer: {args.email}")
    try:
        result = OrderSeedingService(get_store()).create_test_order(
            args.email, order_number=args.order_number
        )
    except MissingDependencyError as e:
        print(f"❌ {e}")
        sys.exit(1)

    order = result.orders[0]
    print(f"✅ Test order created: {order.order_number}")
    print(f"   Customer: {result.customer.email}")
    print(f"   Total:    ${order.total}")
    print(f"   Status:   {order.status}")
    print(f"📦 Orders in store: {result.orders_in_store}")


if __name__ == "__main__":
    main()
