"""
Order seeding - synthesize test orders for an existing customer.

The customer is located by exact email match and products by their position
in the products collection. Nothing is written unless both exist: the seeder
never creates placeholder customers or products.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from storefront.database.collection_store import CollectionStore
from storefront.entities.base import utcnow
from storefront.entities.order import (
    Address,
    Delivery,
    DeliveryMethod,
    DeliveryStatus,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from storefront.entities.product import Product
from storefront.entities.user import User
from storefront.repositories.order import OrderRepository
from storefront.repositories.product import ProductRepository
from storefront.repositories.user import UserRepository
from storefront.services.exceptions import MissingDependencyError
from storefront.utils.identifiers import generate_order_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTemplate:
    """Shape of one synthesized order."""

    product_slot: int  # 0 = first product, 1 = second product (falls back to first)
    quantity: int
    status: OrderStatus
    delivery_method: DeliveryMethod
    delivery_status: DeliveryStatus
    street: str
    zip_code: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    days_ago: int
    notes: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    city: str = "Tech City"
    state: str = "CA"
    phone: str = "+1234567890"


TEST_ORDER = OrderTemplate(
    product_slot=0,
    quantity=2,
    status=OrderStatus.PENDING,
    delivery_method=DeliveryMethod.STORE_PICKUP,
    delivery_status=DeliveryStatus.PENDING,
    street="123 Test Street",
    city="Test City",
    state="Test State",
    zip_code="12345",
    payment_method=PaymentMethod.CASH_ON_DELIVERY,
    payment_status=PaymentStatus.PENDING,
    days_ago=0,
    notes="This is a test order",
)

ORDER_HISTORY: Tuple[OrderTemplate, ...] = (
    OrderTemplate(
        product_slot=0,
        quantity=1,
        status=OrderStatus.CONFIRMED,
        delivery_method=DeliveryMethod.STORE_PICKUP,
        delivery_status=DeliveryStatus.PROCESSING,
        street="123 Main St",
        zip_code="90210",
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
        payment_status=PaymentStatus.PENDING,
        days_ago=7,
        notes="First test order",
    ),
    OrderTemplate(
        product_slot=1,
        quantity=2,
        status=OrderStatus.PROCESSING,
        delivery_method=DeliveryMethod.HOME_DELIVERY,
        delivery_status=DeliveryStatus.SHIPPED,
        street="456 Oak Ave",
        zip_code="90211",
        payment_method=PaymentMethod.CREDIT_CARD,
        payment_status=PaymentStatus.PAID,
        days_ago=3,
        notes="Second test order with delivery",
        tracking_number="TRK123456789",
        carrier="FedEx",
    ),
    OrderTemplate(
        product_slot=0,
        quantity=3,
        status=OrderStatus.DELIVERED,
        delivery_method=DeliveryMethod.STORE_PICKUP,
        delivery_status=DeliveryStatus.DELIVERED,
        street="789 Pine St",
        zip_code="90212",
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
        payment_status=PaymentStatus.PAID,
        days_ago=1,
        notes="Third test order - delivered",
    ),
)


@dataclass
class SeedResult:
    customer: User
    orders: List[Order] = field(default_factory=list)
    orders_in_store: int = 0


class OrderSeedingService:
    """Creates synthetic orders for local testing."""

    def __init__(self, store: CollectionStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self.user_repo = UserRepository(store)
        self.product_repo = ProductRepository(store)
        self.order_repo = OrderRepository(store)

    def create_test_order(
        self, customer_email: str, order_number: str = "TEST-ORD-001"
    ) -> SeedResult:
        """Create a single pending order for the customer."""
        customer = self._resolve_customer(customer_email)
        products = self._resolve_products()
        order = self._build_order(customer, products, TEST_ORDER, order_number)
        return self._persist(customer, [order])

    def create_order_history(
        self, customer_email: str, start_number: int = 1
    ) -> SeedResult:
        """Create orders in several lifecycle states, dated over the past week."""
        customer = self._resolve_customer(customer_email)
        products = self._resolve_products()
        orders = [
            self._build_order(
                customer, products, template, generate_order_number(start_number + i)
            )
            for i, template in enumerate(ORDER_HISTORY)
        ]
        return self._persist(customer, orders)

    def _resolve_customer(self, email: str) -> User:
        customer = self.user_repo.find_by_email(email)
        if not customer:
            logger.warning("Seeding aborted: no user with email %s", email)
            raise MissingDependencyError(f"Test user not found: {email}")
        return customer

    def _resolve_products(self) -> Tuple[Product, Product]:
        try:
            first = self.product_repo.find_at(0)
            second = self.product_repo.find_at(1) or first
        except ValidationError as e:
            logger.warning("Seeding aborted: invalid product record: %s", e)
            raise MissingDependencyError(f"Invalid product record: {e}") from e
        if not first:
            logger.warning("Seeding aborted: products collection is empty")
            raise MissingDependencyError("No products found in database")
        return first, second

    def _build_order(
        self,
        customer: User,
        products: Tuple[Product, Product],
        template: OrderTemplate,
        order_number: str,
    ) -> Order:
        now = self.clock()
        placed_at = now - timedelta(days=template.days_ago)
        product = products[template.product_slot]

        return Order(
            order_number=order_number,
            customer=customer.id,
            items=[OrderItem(product=product.id, quantity=template.quantity, price=product.price)],
            status=template.status,
            delivery=Delivery(
                method=template.delivery_method,
                status=template.delivery_status,
                address=Address(
                    street=template.street,
                    city=template.city,
                    state=template.state,
                    zip_code=template.zip_code,
                    phone=template.phone,
                ),
                tracking_number=template.tracking_number,
                carrier=template.carrier,
            ),
            payment_method=template.payment_method,
            payment_status=template.payment_status,
            order_date=placed_at,
            created_at=placed_at,
            updated_at=now,
            customer_notes=template.notes,
        )

    def _persist(self, customer: User, orders: List[Order]) -> SeedResult:
        self.order_repo.insert_many(orders)
        total_orders = self.order_repo.count()
        for order in orders:
            logger.info(
                "Seeded order %s status=%s delivery=%s total=%s",
                order.order_number,
                order.status,
                order.delivery.status,
                order.total,
            )
        return SeedResult(customer=customer, orders=orders, orders_in_store=total_orders)
