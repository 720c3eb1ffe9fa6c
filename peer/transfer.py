"""Download transfer: resolve a file through the Coordinator, then stream it from its owner."""

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from common.logging_config import get_logger
from common.types import ResolvedLocation
from peer.coordinator_client import CoordinatorClient
from peer.exceptions import (
    UnavailableError,
    UnauthorizedError,
    NotFoundError,
    OwnerOfflineError,
    StorageError,
    RequestError,
)
from peer.storage import LocalFileStore

logger = get_logger(__name__)

ProgressCallback = Callable[[int, Optional[int]], None]


class TransferState(str, Enum):
    REQUESTED = "REQUESTED"
    RESOLVING = "RESOLVING"
    STREAMING = "STREAMING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class FailureReason(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    OWNER_OFFLINE = "OWNER_OFFLINE"
    IO_ERROR = "IO_ERROR"
    UNAVAILABLE = "UNAVAILABLE"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class TransferResult:
    """
    Outcome of one download.
    """
    file_id: int
    state: TransferState
    reason: Optional[FailureReason] = None
    message: str = ""
    filename: Optional[str] = None
    path: Optional[Path] = None
    bytes_received: int = 0

    @property
    def ok(self) -> bool:
        return self.state == TransferState.COMPLETE


class TransferCancelled(Exception):
    pass


class DownloadTransfer:
    """
    One download, driven through REQUESTED -> RESOLVING -> STREAMING ->
    COMPLETE or FAILED.

    Bytes go to a partial file of their own in the downloads directory and
    are renamed to ``<downloads>/<filename>`` only after the owner signals
    end-of-data. Every failure removes the partial file. ``cancel()`` may be
    called from any thread.
    """

    def __init__(
        self,
        file_id: int,
        client: CoordinatorClient,
        store: LocalFileStore,
        user_id: Optional[str],
        http_client: httpx.Client,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.file_id = file_id
        self.client = client
        self.store = store
        self.user_id = user_id
        self.http_client = http_client
        self.on_progress = on_progress
        self.history: List[TransferState] = []
        self._cancel_event = threading.Event()

    @property
    def state(self) -> Optional[TransferState]:
        return self.history[-1] if self.history else None

    def cancel(self) -> None:
        """Request the transfer to stop; takes effect before the next piece is written."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _transition(self, state: TransferState) -> None:
        logger.debug(f"Transfer of file {self.file_id}: {self.state} -> {state.value}")
        self.history.append(state)

    def _fail(
        self,
        reason: FailureReason,
        message: str,
        filename: Optional[str] = None,
        bytes_received: int = 0,
    ) -> TransferResult:
        self._transition(TransferState.FAILED)
        logger.warning(f"Download of file {self.file_id} failed: {reason.value} - {message}")
        return TransferResult(
            file_id=self.file_id,
            state=TransferState.FAILED,
            reason=reason,
            message=message,
            filename=filename,
            bytes_received=bytes_received,
        )

    def run(self) -> TransferResult:
        """
        Drive the transfer to a terminal state.

        Returns:
            TransferResult describing the terminal state; failures are values, not exceptions
        """
        self._transition(TransferState.REQUESTED)

        if not self.user_id:
            return self._fail(FailureReason.UNAUTHENTICATED, "Not logged in. Please run: login <username> <password>")

        self._transition(TransferState.RESOLVING)
        try:
            location = self.client.resolve(self.file_id)
        except NotFoundError:
            return self._fail(FailureReason.NOT_FOUND, f"File {self.file_id} does not exist")
        except OwnerOfflineError:
            return self._fail(FailureReason.OWNER_OFFLINE, f"The owner of file {self.file_id} is offline")
        except UnauthorizedError as e:
            return self._fail(FailureReason.UNAUTHENTICATED, str(e))
        except (UnavailableError, RequestError) as e:
            return self._fail(FailureReason.UNAVAILABLE, str(e))
        except KeyboardInterrupt:
            return self._fail(FailureReason.CANCELLED, "Download cancelled")

        if self.cancelled:
            return self._fail(FailureReason.CANCELLED, "Download cancelled", filename=location.filename)

        self._transition(TransferState.STREAMING)
        return self._stream(location)

    def _stream(self, location: ResolvedLocation) -> TransferResult:
        filename = location.filename
        try:
            partial = self.store.create_partial(filename)
        except StorageError as e:
            return self._fail(FailureReason.IO_ERROR, str(e), filename=filename)

        received = 0
        logger.info(f"Streaming file {self.file_id} ({filename!r}) from {location.endpoint} into {partial.name}")

        try:
            with self.http_client.stream('GET', location.url) as response:
                if response.status_code == 404:
                    self.store.discard_partial(partial)
                    return self._fail(
                        FailureReason.NOT_FOUND,
                        f"{location.endpoint} no longer holds {filename}",
                        filename=filename,
                    )
                if response.status_code != 200:
                    self.store.discard_partial(partial)
                    return self._fail(
                        FailureReason.IO_ERROR,
                        f"{location.endpoint} answered with status {response.status_code}",
                        filename=filename,
                    )

                content_length = response.headers.get('Content-Length')
                total = int(content_length) if content_length and content_length.isdigit() else None

                with open(partial, 'wb') as f:
                    for piece in response.iter_bytes():
                        if self.cancelled:
                            raise TransferCancelled()
                        f.write(piece)
                        received += len(piece)
                        if self.on_progress:
                            self.on_progress(received, total)

                if self.cancelled:
                    raise TransferCancelled()

                if total is not None and response.num_bytes_downloaded != total:
                    self.store.discard_partial(partial)
                    return self._fail(
                        FailureReason.IO_ERROR,
                        f"Connection closed after {response.num_bytes_downloaded} of {total} bytes",
                        filename=filename,
                        bytes_received=received,
                    )

            path = self.store.finalize_download(partial, filename)

        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            self.store.discard_partial(partial)
            return self._fail(
                FailureReason.OWNER_OFFLINE,
                f"Cannot reach {location.endpoint}: {type(e).__name__}",
                filename=filename,
            )
        except (TransferCancelled, KeyboardInterrupt):
            self.store.discard_partial(partial)
            return self._fail(FailureReason.CANCELLED, "Download cancelled", filename=filename, bytes_received=received)
        except httpx.TimeoutException:
            self.store.discard_partial(partial)
            return self._fail(
                FailureReason.IO_ERROR,
                f"{location.endpoint} stopped sending data",
                filename=filename,
                bytes_received=received,
            )
        except (httpx.TransportError, StorageError, OSError) as e:
            self.store.discard_partial(partial)
            return self._fail(FailureReason.IO_ERROR, str(e) or type(e).__name__, filename=filename, bytes_received=received)

        self._transition(TransferState.COMPLETE)
        logger.info(f"Downloaded file {self.file_id} to {path} ({received} bytes)")
        return TransferResult(
            file_id=self.file_id,
            state=TransferState.COMPLETE,
            filename=filename,
            path=path,
            bytes_received=received,
        )
