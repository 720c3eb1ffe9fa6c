"""Peer node: this machine's session with the Coordinator plus its local files."""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from common.logging_config import get_logger
from peer.config import PeerConfig
from peer.coordinator_client import CoordinatorClient
from peer.exceptions import ConflictError, NotFoundError, StorageError, UnauthorizedError
from peer.storage import LocalFileStore
from peer.transfer import DownloadTransfer, ProgressCallback, TransferResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class PeerSession:
    """
    The login this node holds at the Coordinator.
    """
    user_id: str
    username: str
    endpoint: str


@dataclass(frozen=True)
class UploadedFile:
    file_id: int
    filename: str
    local_name: str
    size: int


class PeerNode:
    """
    Ties the Coordinator client, local storage and download transfers together.

    The session survives restarts through the config file so a crashed node
    can still log out cleanly.
    """

    def __init__(
        self,
        config: PeerConfig,
        client: Optional[CoordinatorClient] = None,
        store: Optional[LocalFileStore] = None,
        peer_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config
        self.client = client or CoordinatorClient(config)
        self.store = store or LocalFileStore(config.get_storage_dir())
        self.peer_transport = peer_transport
        saved = config.get_session()
        self.session: Optional[PeerSession] = PeerSession(**saved) if saved else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def _set_session(self, session: Optional[PeerSession]) -> None:
        self.session = session
        if session is None:
            self.config.clear_session()
        else:
            self.config.set_session(
                {'user_id': session.user_id, 'username': session.username, 'endpoint': session.endpoint}
            )

    def _require_session(self) -> PeerSession:
        if self.session is None:
            raise UnauthorizedError("Not logged in. Please run: login <username> <password>")
        return self.session

    def register(self, username: str, password: str) -> dict:
        """
        Create an account at the Coordinator.

        Raises:
            ConflictError: Username already taken
        """
        user = self.client.register_user(username, password)
        logger.info(f"Registered user {username} [user_id={user['user_id']}]")
        return user

    def login(self, username: str, password: str) -> PeerSession:
        """
        Log in and advertise this node's file endpoint.

        Raises:
            ConflictError: This node (or another) already holds a session for the user
            UnauthorizedError: Invalid username or password
        """
        if self.session is not None:
            raise ConflictError(f"Already logged in as {self.session.username}. Please run: logout")

        endpoint = self.config.get_advertise_endpoint()
        data = self.client.login(username, password, endpoint)
        session = PeerSession(user_id=data['user_id'], username=data['username'], endpoint=data['endpoint'])
        self._set_session(session)
        logger.info(f"Logged in as {username} advertising {endpoint} [user_id={session.user_id}]")
        return session

    def check_session(self) -> bool:
        """
        Confirm a saved session with the Coordinator, dropping it if the
        Coordinator no longer knows it (it expired or the Coordinator restarted).

        Returns:
            True if this node still holds a live session

        Raises:
            UnavailableError: The Coordinator cannot be reached; the session is kept
        """
        if self.session is None:
            return False

        try:
            self.client.lookup_session(self.session.user_id)
        except NotFoundError:
            logger.info(f"Saved session is no longer active [user_id={self.session.user_id}]")
            self._set_session(None)
            return False
        return True

    def logout(self) -> Optional[int]:
        """
        End the session; the Coordinator drops every file record this user owns.

        A session the Coordinator no longer knows (expired or swept) counts as
        already logged out.

        Returns:
            Number of catalog records removed, or None if there was nothing to end
        """
        if self.session is None:
            return None

        user_id = self.session.user_id
        try:
            removed = self.client.logout(user_id)
        except NotFoundError:
            logger.info(f"Session already ended at the coordinator [user_id={user_id}]")
            removed = None

        self._set_session(None)
        logger.info(f"Logged out [user_id={user_id}]")
        return removed

    def upload(self, paths: List[Path]) -> List[UploadedFile]:
        """
        Copy files into local storage and register them in the catalog as one batch.

        Local copies are removed again if the Coordinator rejects the batch.

        Raises:
            UnauthorizedError: Not logged in, or the session has expired
            StorageError: A file could not be copied
        """
        session = self._require_session()
        if not paths:
            raise StorageError("No files to upload")

        entries = []
        try:
            for path in paths:
                entries.append(self.store.store_upload(path))

            records = self.client.register_files(session.user_id, [entry.filename for entry in entries])
        except UnauthorizedError:
            self._rollback(entries)
            logger.warning(f"Coordinator no longer holds our session [user_id={session.user_id}]")
            self._set_session(None)
            raise
        except (Exception, KeyboardInterrupt):
            self._rollback(entries)
            raise

        uploaded = []
        for entry, record in zip(entries, records):
            self.store.index.set_file_id(entry.local_name, record['file_id'])
            uploaded.append(
                UploadedFile(
                    file_id=record['file_id'],
                    filename=entry.filename,
                    local_name=entry.local_name,
                    size=entry.size,
                )
            )
        self.store.save_index()

        logger.info(f"Uploaded {len(uploaded)} file(s) [user_id={session.user_id}]")
        return uploaded

    def _rollback(self, entries) -> None:
        for entry in entries:
            self.store.remove_upload(entry.local_name)
        if entries:
            logger.info(f"Removed {len(entries)} local copies of an unregistered upload")

    def search(self, keyword: str) -> List[dict]:
        return self.client.search(keyword)

    def new_download(
        self,
        file_id: int,
        on_progress: Optional[ProgressCallback] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> DownloadTransfer:
        """
        Prepare a download; call run() on the result (and cancel() to abort it).
        """
        if http_client is None:
            timeouts = self.config.get_timeouts()
            http_client = httpx.Client(
                timeout=httpx.Timeout(timeouts['idle'], connect=timeouts['connect']),
                transport=self.peer_transport,
            )
        return DownloadTransfer(
            file_id=file_id,
            client=self.client,
            store=self.store,
            user_id=self.session.user_id if self.session else None,
            http_client=http_client,
            on_progress=on_progress,
        )

    def download(self, file_id: int, on_progress: Optional[ProgressCallback] = None) -> TransferResult:
        transfer = self.new_download(file_id, on_progress=on_progress)
        try:
            return transfer.run()
        finally:
            transfer.http_client.close()

    def close(self) -> None:
        self.client.close()
