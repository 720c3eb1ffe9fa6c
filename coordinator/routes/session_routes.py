"""Active session API routes."""

from fastapi import APIRouter

from coordinator.schemas.sessions import SessionResponse, LogoutResponse
from coordinator.services.auth_service import AuthService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("/{user_id}", response_model=SessionResponse)
async def get_session(user_id: str):
    """
    Look up the endpoint a user is logged in from.

    Raises:
        - 404: No active session
    """
    session = AuthService().lookup_session(user_id)
    return SessionResponse(
        user_id=session.user_id,
        endpoint=session.endpoint,
        created_at=session.created_at.isoformat(),
    )


@router.delete("/{user_id}", response_model=LogoutResponse)
async def end_session(user_id: str):
    """
    Log a user out. Every file record the user owns is removed with the session.

    Raises:
        - 404: No active session (already logged out)
    """
    files_removed = await AuthService().deauthenticate(user_id)
    return LogoutResponse(user_id=user_id, files_removed=files_removed)
