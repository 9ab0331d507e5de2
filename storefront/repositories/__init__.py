from .base import BaseRepository
from .order import OrderRepository
from .product import ProductRepository
from .quiz import QuizRepository, UserQuizRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "OrderRepository",
    "ProductRepository",
    "QuizRepository",
    "UserQuizRepository",
    "UserRepository",
]
