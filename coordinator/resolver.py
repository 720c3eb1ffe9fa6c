"""Location resolver: file identifier -> endpoint and filename to fetch from."""

from common.logging_config import get_logger
from common.types import FileRecord, ResolvedLocation
from coordinator.exceptions import FileRecordNotFoundError, OwnerOfflineError, SessionNotFoundError
from coordinator.file_catalog import FileCatalog
from coordinator.locks import UserLockTable
from coordinator.session_registry import ActiveSessionRegistry

logger = get_logger(__name__)


class LocationResolver:
    """Read-only join of the catalog and the session registry."""

    def __init__(self, locks: UserLockTable, catalog: FileCatalog, registry: ActiveSessionRegistry):
        self.locks = locks
        self.catalog = catalog
        self.registry = registry

    def _lookup_record(self, file_id: int) -> FileRecord:
        try:
            return self.catalog.lookup(file_id)
        except FileRecordNotFoundError:
            if self.catalog.is_withdrawn(file_id):
                logger.info(f"File {file_id} unresolvable: withdrawn when its owner went offline")
                raise OwnerOfflineError(f"The owner of file {file_id} is offline")
            raise

    async def resolve(self, file_id: int) -> ResolvedLocation:
        """
        Raises:
            FileRecordNotFoundError: If file_id was never issued
            OwnerOfflineError: If the owner has no session, or the record was
                withdrawn when the owner's session ended
        """
        owner_id = self._lookup_record(file_id).owner_id

        # record and session must be read under the same lock hold
        async with self.locks.hold(owner_id):
            record = self._lookup_record(file_id)
            try:
                session = self.registry.lookup(record.owner_id)
            except SessionNotFoundError:
                logger.info(f"File {file_id} unresolvable: owner offline [user_id={owner_id}]")
                raise OwnerOfflineError(f"The owner of file {file_id} is offline")

        logger.debug(f"Resolved file {file_id} to {session.endpoint}")
        return ResolvedLocation(file_id=record.file_id, endpoint=session.endpoint, filename=record.filename)
