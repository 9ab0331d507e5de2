#!/usr/bin/env python3
"""
Create a short order history (confirmed, processing, delivered) for a customer.

Usage:
    python scripts/create_test_orders.py
    python scripts/create_test_orders.py --email customer@example.com --start 4
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
    parser = argparse.ArgumentParser(description="Create several test orders")
    parser.add_argument("--email", "-e", default=settings.SEED_CUSTOMER_EMAIL)
    parser.add_argument(
        "--start",
        type=int,
        default=1,
        help="Sequence number of the first order (ORD-001 by default)",
    )
    args = parser.parse_args()

    print(f"🔍 Looking up customer: {args.email}")
    try:
        result = OrderSeedingService(get_store()).create_order_history(
            args.email, start_number=args.start
        )
    except MissingDependencyError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"✅ Created {len(result.orders)} orders for {result.customer.email}")
    print("-" * 60)
    for order in result.orders:
        print(
            f"  {order.order_number} | {order.status:<10} | "
            f"{order.delivery.method:<13} | ${order.total}"
        )
    print("-" * 60)
    print(f"📦 Orders in store: {result.orders_in_store}")


if __name__ == "__main__":
    main()
