"""Worker account API routes."""

from fastapi import APIRouter, status

from src.api.deps import LoginRateLimit
from src.schemas.auth import LoginRequest, LoginResponse, SignupRequest, UserProfile
from src.schemas.common import MessageResponse
from src.services.auth_service import WorkerAuthService

router = APIRouter(prefix="/worker-auth", tags=["worker-auth"])


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up new worker",
    description="Create a worker account. Username and email must be unused among workers.",
)
async def signup(data: SignupRequest) -> MessageResponse:
    """Sign up a new worker.

    Raises:
        ConflictError: 409 if the username or email is already taken.
    """
    service = WorkerAuthService()
    await service.signup(
        username=data.username,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    return MessageResponse(message="Worker registered successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login worker",
    description="Authenticate a worker with username or email and password. Returns a JWT valid for one hour.",
)
async def login(data: LoginRequest, _rate_limit: LoginRateLimit) -> LoginResponse:
    """Login worker with username or email.

    Raises:
        AuthenticationError: 401 if the credentials are invalid.
    """
    service = WorkerAuthService()
    result = await service.login(identifier=data.identifier, password=data.password)
    return LoginResponse(token=result["token"], user=UserProfile(**result["user"]))
