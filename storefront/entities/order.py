from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, model_validator

from .base import BaseEntity, CamelModel, RecordId, utcnow


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class DeliveryMethod(str, Enum):
    HOME_DELIVERY = "home_delivery"
    STORE_PICKUP = "store_pickup"
    EXPRESS_DELIVERY = "express_delivery"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    RETURNED = "returned"


class Address(CamelModel):
    street: str
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "United States"
    phone: Optional[str] = None


class Delivery(CamelModel):
    method: DeliveryMethod = DeliveryMethod.STORE_PICKUP
    status: DeliveryStatus = DeliveryStatus.PENDING
    address: Optional[Address] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    estimated_delivery: Optional[datetime] = None


class OrderItem(CamelModel):
    """Order line. ``price`` is the unit price at the time of ordering."""

    product: RecordId = Field(..., description="Product id")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    total: float = 0.0

    @model_validator(mode="after")
    def _compute_total(self) -> "OrderItem":
        self.total = self.price * self.quantity
        return self


class Order(BaseEntity):
    order_number: str
    customer: RecordId = Field(..., description="Customer user id")
    items: List[OrderItem] = Field(..., min_length=1)
    total: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    delivery: Delivery = Field(default_factory=Delivery)
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_date: datetime = Field(default_factory=utcnow)
    customer_notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_timestamps(cls, data: Any) -> Any:
        # Historical orders are created with an order date in the past
        if isinstance(data, dict):
            order_date = data.get("order_date", data.get("orderDate"))
            if order_date is not None and "created_at" not in data and "createdAt" not in data:
                data = {**data, "created_at": order_date}
        return data

    @model_validator(mode="after")
    def _compute_total(self) -> "Order":
        self.total = sum(item.total for item in self.items)
        return self
