"""JWT authentication utilities."""

import time
from enum import Enum
from typing import Any

import jwt

from src.core.config import get_settings
from src.schemas.auth import TokenPayload

JWT_ALGORITHM = "HS256"


class AuthErrorCode(str, Enum):
    """Authentication error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class AuthError(Exception):
    """Raised when an access token cannot be trusted."""

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


def create_access_token(user_id: str, expires_in: int | None = None) -> str:
    """Issue a signed access token for a user.

    Args:
        user_id: The user's identifier, stored in the sub claim.
        expires_in: Lifetime in seconds (settings default when omitted).

    Returns:
        str: Encoded JWT.
    """
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else settings.jwt_expiry_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


# Checked in order: ExpiredSignatureError and friends subclass InvalidTokenError
_DECODE_ERRORS: tuple[tuple[type[jwt.InvalidTokenError], str, AuthErrorCode], ...] = (
    (jwt.ExpiredSignatureError, "Token has expired", AuthErrorCode.TOKEN_EXPIRED),
    (jwt.InvalidSignatureError, "Invalid token signature", AuthErrorCode.INVALID_SIGNATURE),
    (jwt.MissingRequiredClaimError, "Token missing required claim: {error}", AuthErrorCode.INVALID_TOKEN),
    (jwt.InvalidTokenError, "Invalid token: {error}", AuthErrorCode.INVALID_TOKEN),
)


def decode_jwt(token: str) -> TokenPayload:
    """Verify an access token's signature and expiry and return its claims.

    Raises:
        AuthError: With a code describing why the token was rejected.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.InvalidTokenError as e:
        for error_cls, template, code in _DECODE_ERRORS:
            if isinstance(e, error_cls):
                raise AuthError(template.format(error=e), code) from e
        raise

    return TokenPayload(sub=payload["sub"], exp=payload["exp"], iat=payload["iat"])
