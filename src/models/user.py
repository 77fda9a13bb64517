"""User model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict


class User(TypedDict):
    """users table row representation."""

    id: str
    username: str
    email: str
    phone: str | None
    password_hash: str
    created_at: datetime
