"""Authentication API routes."""

from fastapi import APIRouter, status

from coordinator.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse
)
from coordinator.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """
    Create a user account.

    Raises:
        - 409: Username already exists
    """
    auth_service = AuthService()
    user = auth_service.create_user(request.username, request.password)

    return RegisterResponse(user_id=user.user_id, username=user.username)


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """
    Verify credentials and register the caller's endpoint as the user's active session.

    Parameters:
        - username, password: Account credentials
        - endpoint: host:port where the caller serves its files

    Raises:
        - 401: Invalid credentials
        - 409: User already logged in from another node
    """
    auth_service = AuthService()
    user, session = await auth_service.authenticate(request.username, request.password, request.endpoint)

    return LoginResponse(
        user_id=user.user_id,
        username=user.username,
        endpoint=session.endpoint,
        created_at=session.created_at.isoformat(),
    )
