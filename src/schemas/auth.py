"""Authentication schemas for signup, login and token payloads."""

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.order import EMAIL_PATTERN


class UserContext(BaseModel):
    """Authenticated user context extracted from a JWT token."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="Unique identifier for the user (from JWT sub claim)")


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Represents the claims contained in an access token issued at login.
    """

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's id")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    def to_user_context(self) -> UserContext:
        """Convert token payload to UserContext."""
        return UserContext(user_id=self.sub)


class SignupRequest(BaseModel):
    """Request schema for user signup."""

    model_config = ConfigDict(from_attributes=True)

    username: str = Field(..., description="Unique username", min_length=3, max_length=50)
    phone: str | None = Field(default=None, description="Mobile number", max_length=20)
    email: str = Field(..., description="User's email address", pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(..., description="User's password", min_length=6, max_length=100)


class LoginRequest(BaseModel):
    """Request schema for user login.

    ``identifier`` accepts either the username or the email address.
    """

    model_config = ConfigDict(from_attributes=True)

    identifier: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1, description="User's password")


class UserProfile(BaseModel):
    """Public user fields returned after login."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    email: str
    phone: str | None = None


class LoginResponse(BaseModel):
    """Response schema for user login."""

    message: str = Field(default="Login successful")
    token: str = Field(description="JWT access token")
    user: UserProfile


class CurrentUserResponse(BaseModel):
    """Response schema for GET /api/auth/current."""

    name: str = Field(description="Username")
    email: str
    phone: str | None = None
