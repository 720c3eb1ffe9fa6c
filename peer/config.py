"""Configuration management for the PeerShare peer node."""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from common.constants import (
    COORDINATOR_PORT,
    PEER_FILE_PORT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_IDLE_TIMEOUT,
)
from common.logging_config import get_logger
from peer.network import get_local_ip_address

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.peershare' / 'config.json'


class PeerConfig:
    """Manages peer configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "coordinator_host": os.environ.get("PEERSHARE_COORDINATOR_HOST", "127.0.0.1"),
        "coordinator_port": int(os.environ.get("PEERSHARE_COORDINATOR_PORT", str(COORDINATOR_PORT))),
        "advertise_host": os.environ.get("PEERSHARE_ADVERTISE_HOST", ""),
        "file_port": int(os.environ.get("PEERSHARE_FILE_PORT", str(PEER_FILE_PORT))),
        "storage_dir": os.environ.get(
            "PEERSHARE_STORAGE_DIR", str(Path.home() / '.peershare' / 'storage')
        ),
        "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "idle_timeout": DEFAULT_IDLE_TIMEOUT,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.peershare/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A corrupt file is backed up to config.json.bak and defaults are used.
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.peershare' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Unreadable config {self.config_path}: {e}, using defaults")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError as copy_error:
                    logger.warning(f"Could not back up config: {copy_error}")
                return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        self.data = config
        self.save()
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config {self.config_path}: {e}")

    def get_session(self) -> Optional[dict]:
        """
        Get the persisted login session.

        Returns:
            Dictionary with 'user_id', 'username' and 'endpoint', or None
        """
        return self.data.get('session')

    def set_session(self, session: dict) -> None:
        self.data['session'] = session
        self.save()

    def clear_session(self) -> None:
        if self.data.pop('session', None) is not None:
            self.save()

    def get_coordinator_url(self) -> str:
        """
        Get Coordinator base URL.

        Returns:
            Base URL string (e.g., "http://127.0.0.1:4000")
        """
        host = self.data.get('coordinator_host', '127.0.0.1')
        port = self.data.get('coordinator_port', COORDINATOR_PORT)
        return f"http://{host}:{port}"

    def get_file_port(self) -> int:
        return int(self.data.get('file_port', PEER_FILE_PORT))

    def get_advertise_endpoint(self) -> str:
        """
        Get the host:port other peers should use to reach this node's files.

        Falls back to the detected local IP address when no advertise_host is set.
        """
        host = self.data.get('advertise_host') or get_local_ip_address()
        return f"{host}:{self.get_file_port()}"

    def get_storage_dir(self) -> Path:
        return Path(self.data.get('storage_dir')).expanduser()

    def get_timeouts(self) -> dict:
        """
        Get timeout configuration in seconds.

        Returns:
            Dictionary with 'connect', 'request' and 'idle'
        """
        return {
            'connect': float(self.data.get('connect_timeout', DEFAULT_CONNECT_TIMEOUT)),
            'request': float(self.data.get('request_timeout', DEFAULT_REQUEST_TIMEOUT)),
            'idle': float(self.data.get('idle_timeout', DEFAULT_IDLE_TIMEOUT)),
        }

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }
