"""Authentication service: credential checks plus session registration."""

from typing import Optional

from common.logging_config import get_logger
from common.types import ActiveSession
from coordinator.credentials import CredentialStore
from coordinator.repositories.user_repository import User
from coordinator.service_locator import get_credential_store, get_session_registry
from coordinator.session_registry import ActiveSessionRegistry

logger = get_logger(__name__)


class AuthService:
    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        registry: Optional[ActiveSessionRegistry] = None,
    ):
        self.credentials = credentials or get_credential_store()
        self.registry = registry or get_session_registry()

    def create_user(self, username: str, password: str) -> User:
        logger.info(f"Attempting to register user: {username}")
        user = self.credentials.create(username, password)
        logger.info(f"Successfully registered user: {username} [user_id={user.user_id}]")
        return user

    async def authenticate(self, username: str, password: str, endpoint: str) -> tuple[User, ActiveSession]:
        """
        Verify credentials, then register the caller's endpoint as the user's session.

        Raises:
            InvalidCredentialsError: Bad username or password
            SessionConflictError: The user is already logged in
        """
        logger.info(f"Login attempt for user: {username} endpoint={endpoint}")
        user = self.credentials.verify(username, password)
        session = await self.registry.register(user.user_id, endpoint)
        logger.info(f"Successfully logged in user: {username} [user_id={user.user_id}]")
        return user, session

    async def deauthenticate(self, user_id: str) -> int:
        """
        End the user's session.

        Returns:
            Number of file records removed with the session

        Raises:
            SessionNotFoundError: No session exists (already logged out or expired and swept)
        """
        return await self.registry.remove(user_id)

    def lookup_session(self, user_id: str) -> ActiveSession:
        return self.registry.lookup(user_id)
