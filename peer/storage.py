"""Manages the peer's files on disk: uploaded copies, served reads and downloads."""

import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Iterator, Optional

from common.constants import PARTIAL_SUFFIX, STREAM_PIECE_SIZE
from common.logging_config import get_logger
from peer.exceptions import StorageError
from peer.file_index import FileIndex, FileIndexEntry

logger = get_logger(__name__)


def safe_filename(filename: str) -> str:
    """
    Check that a filename is a single plain path component.

    Raises:
        StorageError: If the name is empty, a dot entry, padded with whitespace
            or contains a separator
    """
    if (
        not filename.strip()
        or filename != filename.strip()
        or filename in ('.', '..')
        or '/' in filename
        or '\\' in filename
        or '\x00' in filename
    ):
        raise StorageError(f"Unsafe filename: {filename!r}")
    return filename


class LocalFileStore:
    """
    Storage root layout:

        <root>/uploads/<uuid hex>_<name>   files this node serves
        <root>/downloads/<name>            files fetched from other peers
        <root>/downloads/<name>.<random>.part  downloads in progress
        <root>/index.json                  local name -> catalog filename
    """

    def __init__(self, root: Path):
        self.root = root
        self.uploads_dir = root / 'uploads'
        self.downloads_dir = root / 'downloads'
        self.index = FileIndex(root / 'index.json')

    def initialize(self) -> None:
        """
        Create the storage directories and load the upload index.

        Raises:
            StorageError: If the directories cannot be created or the index is corrupt
        """
        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            self.index.load_from_disk()
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot initialize storage at {self.root}: {e}") from e
        self.index.prune_missing(self.uploads_dir)

        # left behind by downloads interrupted with the process
        for leftover in self.downloads_dir.glob(f"*{PARTIAL_SUFFIX}"):
            self.discard_partial(leftover)

        logger.info(f"Local storage ready at {self.root} ({self.index.count()} uploaded file(s))")

    def store_upload(self, source: Path) -> FileIndexEntry:
        """
        Copy a file into the uploads directory under a unique local name.

        Returns:
            The new index entry (not yet persisted, see save_index)

        Raises:
            StorageError: If the source is not a readable file or the copy fails
        """
        if not source.is_file():
            raise StorageError(f"Not a file: {source}")

        filename = safe_filename(source.name)
        local_name = f"{uuid.uuid4().hex}_{filename}"
        target = self.uploads_dir / local_name

        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            size = target.stat().st_size
        except OSError as e:
            target.unlink(missing_ok=True)
            raise StorageError(f"Cannot store {source}: {e}") from e

        logger.debug(f"Stored {source} as {local_name} ({size} bytes)")
        return self.index.add_entry(local_name, filename, size)

    def remove_upload(self, local_name: str) -> bool:
        """
        Delete an uploaded copy and its index entry.

        Returns:
            True if the file was deleted, False if it didn't exist
        """
        self.index.remove_entry(local_name)
        filepath = self.uploads_dir / local_name
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    def save_index(self) -> None:
        try:
            self.index.save_to_disk()
        except OSError as e:
            raise StorageError(f"Cannot save upload index: {e}") from e

    def resolve_served_path(self, name: str) -> Optional[Path]:
        """
        Find the local file to serve for a catalog filename or a local name.

        Only indexed uploads are served; anything resolving outside the
        uploads directory is refused.

        Returns:
            Path to the file, or None if there is nothing to serve
        """
        try:
            safe_filename(name)
        except StorageError:
            logger.warning(f"Refused to serve unsafe name {name!r}")
            return None

        entry = self.index.find_by_filename(name) or self.index.get_entry(name)
        if entry is None:
            return None

        uploads_root = self.uploads_dir.resolve()
        filepath = (self.uploads_dir / entry.local_name).resolve()
        try:
            filepath.relative_to(uploads_root)
        except ValueError:
            logger.warning(f"Refused to serve {filepath}: outside {uploads_root}")
            return None

        return filepath if filepath.is_file() else None

    @staticmethod
    def read_streaming(filepath: Path, piece_size: int = STREAM_PIECE_SIZE) -> Iterator[bytes]:
        """
        Stream file data in pieces.

        Raises:
            FileNotFoundError: If the file does not exist
            OSError: If a read fails
        """
        with open(filepath, 'rb') as f:
            while True:
                piece = f.read(piece_size)
                if not piece:
                    break
                yield piece

    def download_path(self, filename: str) -> Path:
        return self.downloads_dir / safe_filename(filename)

    def create_partial(self, filename: str) -> Path:
        """
        Reserve a fresh partial file for one download of filename.

        Catalog filenames are not unique, so every download writes to its own
        ``<filename>.<random>.part`` file.

        Raises:
            StorageError: If the name is unsafe or the file cannot be created
        """
        prefix = f"{safe_filename(filename)}."
        try:
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            fd, path = tempfile.mkstemp(prefix=prefix, suffix=PARTIAL_SUFFIX, dir=self.downloads_dir)
        except OSError as e:
            raise StorageError(f"Cannot create partial download of {filename}: {e}") from e
        os.close(fd)
        return Path(path)

    def finalize_download(self, partial: Path, filename: str) -> Path:
        """
        Atomically move a completed partial download to its final name.

        Raises:
            StorageError: If the rename fails
        """
        target = self.download_path(filename)
        try:
            os.replace(partial, target)
        except OSError as e:
            raise StorageError(f"Cannot finalize download of {filename}: {e}") from e
        return target

    def discard_partial(self, partial: Optional[Path]) -> None:
        if partial is None:
            return
        try:
            partial.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial download {partial}: {e}")

