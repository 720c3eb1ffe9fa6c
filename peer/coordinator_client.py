"""HTTP client for communicating with the Coordinator service."""

import time
import uuid
from typing import List, Optional

import httpx

from common.constants import ErrorCode
from common.logging_config import get_logger
from common.types import ResolvedLocation
from peer.config import PeerConfig
from peer.exceptions import (
    UnavailableError,
    UnauthorizedError,
    ConflictError,
    NotFoundError,
    OwnerOfflineError,
    RequestError,
)

logger = get_logger(__name__)

_CODE_EXCEPTIONS = {
    ErrorCode.USER_ALREADY_EXISTS: ConflictError,
    ErrorCode.SESSION_CONFLICT: ConflictError,
    ErrorCode.INVALID_CREDENTIALS: UnauthorizedError,
    ErrorCode.INACTIVE_SESSION: UnauthorizedError,
    ErrorCode.SESSION_NOT_FOUND: NotFoundError,
    ErrorCode.FILE_NOT_FOUND: NotFoundError,
    ErrorCode.OWNER_OFFLINE: OwnerOfflineError,
    ErrorCode.INVALID_FILENAME: RequestError,
    ErrorCode.CATALOG_WRITE_FAILED: RequestError,
    ErrorCode.INTERNAL_ERROR: RequestError,
}

_STATUS_EXCEPTIONS = {
    401: UnauthorizedError,
    404: NotFoundError,
    409: ConflictError,
    503: UnavailableError,
}


def _error_payload(response: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        error_data = response.json()
        return error_data.get('detail', 'Unknown error'), error_data.get('code')
    except ValueError:
        return response.text or 'Unknown error', None


def _is_retryable(response: httpx.Response) -> bool:
    """Only 5xx responses without a domain error code are worth retrying."""
    if response.status_code < 500:
        return False
    _, code = _error_payload(response)
    return code not in _CODE_EXCEPTIONS


class CoordinatorClient:
    """HTTP client for the Coordinator API with retry logic and error mapping."""

    def __init__(self, config: PeerConfig, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize coordinator client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        timeouts = config.get_timeouts()
        self.session = httpx.Client(
            base_url=config.get_coordinator_url(),
            timeout=httpx.Timeout(timeouts['request'], connect=timeouts['connect']),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized CoordinatorClient [base_url={config.get_coordinator_url()}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request, retrying network failures and code-less 5xx responses.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None, 0 disables retries)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object (possibly an error response)

        Raises:
            UnavailableError: If the Coordinator cannot be reached
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s "
                        f"[request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (no retries left): {method} {endpoint} error={e} "
                    f"[request_id={self.request_id}]"
                )
                break

            logger.debug(
                f"Response received: {method} {endpoint} status={response.status_code} "
                f"[request_id={self.request_id}]"
            )

            if _is_retryable(response) and attempt < max_retries:
                delay = backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s "
                    f"[request_id={self.request_id}]"
                )
                time.sleep(delay)
                continue

            return response

        if isinstance(last_exception, httpx.TimeoutException):
            raise UnavailableError("Request to the coordinator timed out. Server may be overloaded.")
        raise UnavailableError("Cannot connect to the coordinator. Is it running?")

    def _raise_for_error(self, response: httpx.Response) -> None:
        """
        Raise the PeerError matching an error response.

        Domain error codes take precedence over the status code.
        """
        if response.status_code < 400:
            return

        detail, code = _error_payload(response)
        exc_class = _CODE_EXCEPTIONS.get(code) or _STATUS_EXCEPTIONS.get(response.status_code, RequestError)
        logger.warning(
            f"Coordinator error: status={response.status_code} code={code} detail={detail} "
            f"[request_id={self.request_id}]"
        )
        raise exc_class(detail, code=code)

    def register_user(self, username: str, password: str) -> dict:
        """
        Create an account.

        Returns:
            Dictionary with 'user_id' and 'username'

        Raises:
            ConflictError: Username already taken
        """
        response = self._request_with_retry(
            'POST', '/auth/register',
            max_retries=0,
            json={'username': username, 'password': password},
        )
        self._raise_for_error(response)
        return response.json()

    def login(self, username: str, password: str, endpoint: str) -> dict:
        """
        Verify credentials and register this node's endpoint as the user's session.

        Returns:
            Dictionary with 'user_id', 'username', 'endpoint' and 'created_at'

        Raises:
            UnauthorizedError: Invalid username or password
            ConflictError: The user is already logged in
        """
        response = self._request_with_retry(
            'POST', '/auth/login',
            max_retries=0,
            json={'username': username, 'password': password, 'endpoint': endpoint},
        )
        self._raise_for_error(response)
        return response.json()

    def logout(self, user_id: str) -> int:
        """
        End the user's session, dropping every file record they own.

        Returns:
            Number of file records removed

        Raises:
            NotFoundError: No session exists for the user
        """
        response = self._request_with_retry('DELETE', f'/sessions/{user_id}')
        self._raise_for_error(response)
        return response.json()['files_removed']

    def lookup_session(self, user_id: str) -> dict:
        response = self._request_with_retry('GET', f'/sessions/{user_id}')
        self._raise_for_error(response)
        return response.json()

    def register_files(self, owner_id: str, filenames: List[str]) -> List[dict]:
        """
        Record uploads in the catalog, all or nothing.

        Returns:
            List of dictionaries with 'file_id', 'filename' and 'owner_id'

        Raises:
            UnauthorizedError: The owner has no active session
            RequestError: Invalid filename or catalog write failure
        """
        response = self._request_with_retry(
            'POST', '/files',
            max_retries=0,
            json={'owner_id': owner_id, 'filenames': filenames},
        )
        self._raise_for_error(response)
        return response.json()['files']

    def search(self, keyword: str) -> List[dict]:
        response = self._request_with_retry('GET', '/files/search', params={'keyword': keyword})
        self._raise_for_error(response)
        return response.json()['files']

    def resolve(self, file_id: int) -> ResolvedLocation:
        """
        Find where a file can be fetched from right now.

        Raises:
            NotFoundError: Unknown file id
            OwnerOfflineError: The owner is not logged in
        """
        response = self._request_with_retry('GET', f'/files/{file_id}/location')
        self._raise_for_error(response)
        data = response.json()
        try:
            return ResolvedLocation(
                file_id=int(data['file_id']),
                endpoint=data['endpoint'],
                filename=data['filename'],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RequestError(f"Malformed location response: {e}") from e

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()
