"""File service: catalog registration, search and resolution."""

from typing import List, Optional

from common.logging_config import get_logger
from common.types import FileRecord, ResolvedLocation
from coordinator.file_catalog import FileCatalog
from coordinator.resolver import LocationResolver
from coordinator.service_locator import get_file_catalog, get_resolver, get_session_registry
from coordinator.session_registry import ActiveSessionRegistry

logger = get_logger(__name__)


class FileService:
    def __init__(
        self,
        catalog: Optional[FileCatalog] = None,
        registry: Optional[ActiveSessionRegistry] = None,
        resolver: Optional[LocationResolver] = None,
    ):
        self.catalog = catalog or get_file_catalog()
        self.registry = registry or get_session_registry()
        self.resolver = resolver or get_resolver()

    async def register_files(self, filenames: List[str], owner_id: str) -> List[FileRecord]:
        """
        Record uploads for an owner with a live session, all or nothing.

        Raises:
            InvalidFilenameError: Empty batch or a malformed name
            InactiveSessionError: The owner is not logged in
            CatalogWriteError: The batch could not be stored
        """
        logger.info(f"Registering {len(filenames)} file(s) [user_id={owner_id}]")
        return await self.catalog.record_uploads(
            filenames,
            owner_id,
            active_since=self.registry.expiry_cutoff(),
        )

    def search(self, keyword: str) -> List[FileRecord]:
        results = self.catalog.search(keyword)
        logger.debug(f"Search {keyword!r} matched {len(results)} file(s)")
        return results

    async def resolve_file(self, file_id: int) -> ResolvedLocation:
        """
        Raises:
            FileRecordNotFoundError: Unknown file id
            OwnerOfflineError: Owner has no live session
        """
        return await self.resolver.resolve(file_id)
