"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from coordinator import service_locator
from coordinator.database import init_database
from peer.config import PeerConfig
from peer.storage import LocalFileStore


@pytest.fixture(autouse=True)
def fresh_service_locator():
    """
    Give every test its own lock table and components.

    asyncio locks are bound to the event loop that first uses them, and each
    async test runs on its own loop.
    """
    service_locator.reset()
    yield
    service_locator.reset()


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary Coordinator database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("coordinator.database.DATABASE_PATH", str(db_path))
        monkeypatch.setattr("coordinator.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .peershare directory
    """
    config_dir = tmp_path / '.peershare'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, tmp_path):
    """
    Create temporary config instance with storage under tmp_path and a fixed endpoint.
    """
    config = PeerConfig(temp_config_dir / 'config.json')
    config.data['storage_dir'] = str(tmp_path / 'storage')
    config.data['advertise_host'] = '10.0.0.5'
    config.data['file_port'] = 5000
    config.data['coordinator_host'] = 'coordinator.test'
    config.data['coordinator_port'] = 4000
    config.save()
    return config


@pytest.fixture
def store(tmp_path):
    """
    Create an initialized local file store under tmp_path.
    """
    local_store = LocalFileStore(tmp_path / 'storage')
    local_store.initialize()
    return local_store


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.
    """
    file_path = tmp_path / 'notes.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing batch uploads.
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
