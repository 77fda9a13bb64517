"""Authentication business logic service."""

import logging
from typing import Any

import bcrypt

from src.api.middleware.auth import create_access_token
from src.api.middleware.error_handler import AuthenticationError, ConflictError, NotFoundError
from src.core.supabase import get_supabase_client
from src.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class AuthService:
    """Service for customer accounts and login."""

    table = "users"
    account_kind = "User"

    def __init__(self) -> None:
        """Initialize auth service with Supabase client."""
        self.client = get_supabase_client()

    async def _find_user(self, column: str, value: str) -> User | None:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        return response.data[0] if response and response.data else None

    async def find_by_identifier(self, identifier: str) -> User | None:
        """Find a user by username, falling back to email.

        Args:
            identifier: Username or email address.

        Returns:
            dict | None: The user row or None.
        """
        user = await self._find_user("username", identifier)
        if user is None:
            user = await self._find_user("email", identifier)
        return user

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        phone: str | None = None,
    ) -> User:
        """Create a new customer account.

        Args:
            username: Unique username.
            email: Unique email address.
            password: Plain-text password, stored as a bcrypt hash.
            phone: Optional mobile number.

        Returns:
            dict: The created user row.

        Raises:
            ConflictError: If the username or email is already taken.
        """
        if await self._find_user("username", username) or await self._find_user("email", email):
            raise ConflictError("Username or email already taken")

        response = (
            self.client.table(self.table)
            .insert(
                {
                    "username": username,
                    "email": email,
                    "phone": phone,
                    "password_hash": hash_password(password),
                }
            )
            .execute()
        )
        user = response.data[0]
        logger.info("%s signed up: %s", self.account_kind, user["id"])
        return user

    async def login(self, identifier: str, password: str) -> dict[str, Any]:
        """Log a user in with username or email.

        Args:
            identifier: Username or email.
            password: Plain-text password.

        Returns:
            dict: token plus the public user fields.

        Raises:
            AuthenticationError: If the user is unknown or the password is wrong.
        """
        user = await self.find_by_identifier(identifier)
        if user is None or not verify_password(password, user.get("password_hash") or ""):
            logger.info("Failed %s login for identifier: %s", self.account_kind.lower(), identifier)
            raise AuthenticationError("Invalid credentials")

        logger.info("%s logged in: %s", self.account_kind, user["id"])
        return {
            "token": create_access_token(str(user["id"])),
            "user": {
                "username": user["username"],
                "email": user["email"],
                "phone": user.get("phone"),
            },
        }

    async def get_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            NotFoundError: If the user no longer exists.
        """
        user = await self._find_user("id", user_id)
        if user is None:
            raise NotFoundError(f"{self.account_kind} not found")
        return user


class WorkerAuthService(AuthService):
    """Accounts for workers who list their services.

    Same signup and login rules as customers, kept in a separate table.
    """

    table = "worker_accounts"
    account_kind = "Worker"
