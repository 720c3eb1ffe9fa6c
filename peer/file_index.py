"""Local upload index: local_name -> metadata (catalog filename, size, file_id)."""

import json
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class FileIndexEntry:
    """
    Metadata for one uploaded file held by this node.
    """
    local_name: str
    filename: str
    size: int
    stored_at: str
    file_id: Optional[int] = None


class FileIndex:
    """
    Maps the unique names files are stored under to the names they are
    cataloged under. Persisted as JSON next to the uploads directory.

    The file server thread reads the index while the shell thread updates it,
    so every access goes through one lock.
    """

    def __init__(self, path: Path):
        self.path = path
        self._index: Dict[str, FileIndexEntry] = {}
        self._lock = threading.Lock()

    def add_entry(self, local_name: str, filename: str, size: int) -> FileIndexEntry:
        entry = FileIndexEntry(
            local_name=local_name,
            filename=filename,
            size=size,
            stored_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._index[local_name] = entry
        return entry

    def set_file_id(self, local_name: str, file_id: int) -> None:
        with self._lock:
            entry = self._index.get(local_name)
            if entry is not None:
                entry.file_id = file_id

    def get_entry(self, local_name: str) -> Optional[FileIndexEntry]:
        with self._lock:
            return self._index.get(local_name)

    def remove_entry(self, local_name: str) -> bool:
        """
        Remove an entry from the index.

        Returns:
            True if the entry was removed, False if not found
        """
        with self._lock:
            return self._index.pop(local_name, None) is not None

    def find_by_filename(self, filename: str) -> Optional[FileIndexEntry]:
        """
        Find the most recently stored upload cataloged under a filename.

        Re-uploads under the same name are separate entries; the newest wins.
        """
        with self._lock:
            matches = [entry for entry in self._index.values() if entry.filename == filename]
        return matches[-1] if matches else None

    def entries(self) -> List[FileIndexEntry]:
        with self._lock:
            return list(self._index.values())

    def count(self) -> int:
        with self._lock:
            return len(self._index)

    def prune_missing(self, directory: Path) -> int:
        """
        Drop entries whose local file no longer exists in a directory.

        Returns:
            Number of entries pruned
        """
        with self._lock:
            missing = [name for name in self._index if not (directory / name).is_file()]
            for name in missing:
                del self._index[name]

        if missing:
            logger.info(f"Pruned {len(missing)} index entries with no local file")
        return len(missing)

    def load_from_disk(self) -> bool:
        """
        Load the index from its JSON file.

        Returns:
            True if loaded successfully, False if the file doesn't exist

        Raises:
            json.JSONDecodeError: If the file is corrupted
        """
        if not self.path.exists():
            logger.debug(f"Index file not found at {self.path}")
            return False

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse index file: {e}")
            raise

        with self._lock:
            self._index = {
                local_name: FileIndexEntry(**entry_dict)
                for local_name, entry_dict in data.get('files', {}).items()
            }
            count = len(self._index)

        logger.info(f"Loaded {count} entries from index file")
        return True

    def save_to_disk(self) -> None:
        """
        Persist the index to its JSON file.

        Raises:
            OSError: If the write fails
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock:
            data = {
                'files': {
                    local_name: asdict(entry)
                    for local_name, entry in self._index.items()
                }
            }

        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.debug(f"Saved {len(data['files'])} entries to index file")
