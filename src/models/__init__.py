"""Database model type definitions."""

from src.models.catalog import Ticket, Worker
from src.models.order import Order, OrderStatus
from src.models.review import Review
from src.models.user import User

__all__ = [
    "Order",
    "OrderStatus",
    "Review",
    "Ticket",
    "User",
    "Worker",
]
