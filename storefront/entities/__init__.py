from .base import BaseEntity, CamelModel, RecordId, utcnow
from .order import (
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
from .product import Product
from .quiz import Quiz, QuizAnswer, QuizDifficulty, UserQuiz
from .user import (
    PRIVILEGED_ROLES,
    ROLE_PERMISSIONS,
    Department,
    OtpData,
    Permission,
    User,
    UserRole,
)

__all__ = [
    # Base
    "BaseEntity",
    "CamelModel",
    "RecordId",
    "utcnow",
    # Users
    "Department",
    "OtpData",
    "Permission",
    "PRIVILEGED_ROLES",
    "ROLE_PERMISSIONS",
    "User",
    "UserRole",
    # Catalogue
    "Product",
    # Orders
    "Address",
    "Delivery",
    "DeliveryMethod",
    "DeliveryStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    # Quizzes
    "Quiz",
    "QuizAnswer",
    "QuizDifficulty",
    "UserQuiz",
]
