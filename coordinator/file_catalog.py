"""File ownership catalog: file identifier -> (filename, owner)."""

import sqlite3
from datetime import datetime
from typing import Iterable, List, Optional

from common.logging_config import get_logger
from common.types import FileRecord
from coordinator.database import get_db_connection
from coordinator.exceptions import (
    CatalogWriteError,
    FileRecordNotFoundError,
    InactiveSessionError,
    InvalidFilenameError,
)
from coordinator.locks import UserLockTable
from coordinator.repositories.file_repository import FileRepository
from coordinator.repositories.session_repository import SessionRepository
from coordinator.utils import utc_now, validate_filename

logger = get_logger(__name__)


class FileCatalog:
    """
    Catalog of uploaded files. Records are never updated in place; they are
    created in batches and deleted in bulk per owner.
    """

    def __init__(self, locks: UserLockTable):
        self.locks = locks

    async def record_upload(self, filename: str, owner_id: str) -> int:
        """
        Record a single upload and return its fresh file identifier.
        """
        records = await self.record_uploads([filename], owner_id)
        return records[0].file_id

    async def record_uploads(
        self,
        filenames: Iterable[str],
        owner_id: str,
        active_since: Optional[datetime] = None,
    ) -> List[FileRecord]:
        """
        Record a batch of uploads for one owner, all or nothing.

        Args:
            filenames: Display names, as the user uploaded them
            owner_id: Owning user identity
            active_since: When given, the owner must hold a session created at or
                after this instant; checked in the same transaction as the insert

        Returns:
            The new records, in the order of filenames

        Raises:
            InvalidFilenameError: If the batch is empty or a name is invalid
            InactiveSessionError: If active_since is given and the owner has no live session
            CatalogWriteError: If the insert fails; nothing from the batch is kept
        """
        names = [validate_filename(name) for name in filenames]
        if not names:
            raise InvalidFilenameError("At least one filename is required")

        async with self.locks.hold(owner_id):
            with get_db_connection() as conn:
                if active_since is not None:
                    session = SessionRepository.get(conn, owner_id)
                    if session is None or session.created_at < active_since:
                        logger.warning(f"Rejected file registration without active session [user_id={owner_id}]")
                        raise InactiveSessionError("No active session for this user")

                try:
                    records = FileRepository.create_files(conn, names, owner_id, utc_now())
                    conn.commit()
                except sqlite3.Error as e:
                    conn.rollback()
                    logger.error(f"Failed to record {len(names)} upload(s) [user_id={owner_id}]: {e}", exc_info=True)
                    raise CatalogWriteError("Failed to record uploads; no files were registered") from e

        logger.info(f"Recorded {len(records)} upload(s) [user_id={owner_id}]")
        return records

    def lookup(self, file_id: int) -> FileRecord:
        record = FileRepository.get_by_id(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")
        return record

    def search(self, keyword: str) -> List[FileRecord]:
        """
        Case-insensitive substring search over filenames. An empty keyword
        matches every record.
        """
        return FileRepository.search(keyword)

    def delete_all_owned_by(self, owner_id: str, conn: Optional[sqlite3.Connection] = None) -> int:
        """
        Delete every record owned by owner_id, leaving withdrawn tombstones.

        The caller must hold the owner's lock. When conn is given the delete
        joins the caller's transaction and is not committed here.
        """
        if conn is not None:
            return FileRepository.delete_by_owner(conn, owner_id)

        with get_db_connection() as conn:
            deleted = FileRepository.delete_by_owner(conn, owner_id)
            conn.commit()
        return deleted

    def count_owned_by(self, owner_id: str) -> int:
        return FileRepository.count_by_owner(owner_id)

    def is_withdrawn(self, file_id: int) -> bool:
        """True if the record existed and was removed when its owner went offline."""
        return FileRepository.is_withdrawn(file_id)
