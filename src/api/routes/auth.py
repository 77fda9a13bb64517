"""Authentication API routes."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser, LoginRateLimit
from src.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    UserProfile,
)
from src.schemas.common import MessageResponse
from src.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up new user",
    description="Create a customer account. Username and email must be unused.",
)
async def signup(data: SignupRequest) -> MessageResponse:
    """Sign up a new user.

    Raises:
        ConflictError: 409 if the username or email is already taken.
    """
    service = AuthService()
    await service.signup(
        username=data.username,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login user",
    description="Authenticate with username or email and password. Returns a JWT valid for one hour.",
)
async def login(data: LoginRequest, _rate_limit: LoginRateLimit) -> LoginResponse:
    """Login user with username or email.

    Args:
        data: Login request with identifier and password.

    Returns:
        LoginResponse: Access token and public user fields.

    Raises:
        AuthenticationError: 401 if the credentials are invalid.
    """
    service = AuthService()
    result = await service.login(identifier=data.identifier, password=data.password)
    return LoginResponse(token=result["token"], user=UserProfile(**result["user"]))


@router.get(
    "/current",
    response_model=CurrentUserResponse,
    summary="Get current user",
    description="Returns the profile of the user identified by the bearer token.",
)
async def get_current(user: CurrentUser) -> CurrentUserResponse:
    """Get the authenticated user's profile."""
    service = AuthService()
    account = await service.get_user(user.user_id)
    return CurrentUserResponse(
        name=account["username"],
        email=account["email"],
        phone=account.get("phone"),
    )
