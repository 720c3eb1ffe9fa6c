"""Tests for the active session registry."""

import asyncio
from datetime import timedelta

import pytest

from coordinator.database import get_db_connection
from coordinator.exceptions import SessionConflictError, SessionNotFoundError
from coordinator.expiry_task import SessionExpiryTask
from coordinator.file_catalog import FileCatalog
from coordinator.locks import UserLockTable
from coordinator.repositories.session_repository import SessionRepository
from coordinator.session_registry import ActiveSessionRegistry
from coordinator.utils import utc_now


@pytest.fixture
def catalog(test_db):
    return FileCatalog(UserLockTable())


@pytest.fixture
def registry(catalog):
    return ActiveSessionRegistry(catalog.locks, catalog, ttl_seconds=1800)


def _insert_stale_session(user_id: str, endpoint: str) -> None:
    with get_db_connection() as conn:
        SessionRepository.insert(conn, user_id, endpoint, utc_now() - timedelta(hours=2))
        conn.commit()


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_then_lookup(self, registry):
        session = await registry.register("user-a", "10.0.0.1:5000")

        found = registry.lookup("user-a")
        assert found.endpoint == "10.0.0.1:5000"
        assert found.created_at == session.created_at

    @pytest.mark.asyncio
    async def test_duplicate_login_is_rejected(self, registry):
        await registry.register("user-a", "10.0.0.1:5000")

        with pytest.raises(SessionConflictError):
            await registry.register("user-a", "10.0.0.2:5000")

        assert registry.lookup("user-a").endpoint == "10.0.0.1:5000"

    @pytest.mark.asyncio
    async def test_concurrent_logins_yield_one_session(self, registry):
        results = await asyncio.gather(
            registry.register("user-a", "10.0.0.1:5000"),
            registry.register("user-a", "10.0.0.2:5000"),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, SessionConflictError)]
        assert len(conflicts) == 1
        assert registry.count() == 1

    @pytest.mark.asyncio
    async def test_expired_session_is_replaced_with_cascade(self, registry, catalog):
        _insert_stale_session("user-a", "10.0.0.1:5000")
        await catalog.record_uploads(["old.txt"], "user-a")

        session = await registry.register("user-a", "10.0.0.9:5000")

        assert session.endpoint == "10.0.0.9:5000"
        assert catalog.count_owned_by("user-a") == 0


class TestLookup:
    def test_lookup_unknown_user(self, registry):
        with pytest.raises(SessionNotFoundError):
            registry.lookup("ghost")

    def test_lookup_expired_session(self, registry):
        _insert_stale_session("user-a", "10.0.0.1:5000")

        with pytest.raises(SessionNotFoundError):
            registry.lookup("user-a")


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_cascades_only_own_records(self, registry, catalog):
        await registry.register("user-u", "10.0.0.1:5000")
        await registry.register("user-v", "10.0.0.2:5000")
        await catalog.record_uploads(["u1.txt", "u2.txt"], "user-u")
        await catalog.record_uploads(["v1.txt"], "user-v")

        removed = await registry.remove("user-u")

        assert removed == 2
        assert catalog.count_owned_by("user-u") == 0
        assert catalog.count_owned_by("user-v") == 1
        with pytest.raises(SessionNotFoundError):
            registry.lookup("user-u")

    @pytest.mark.asyncio
    async def test_remove_without_session_changes_nothing(self, registry, catalog):
        await catalog.record_uploads(["stray.txt"], "user-u")

        with pytest.raises(SessionNotFoundError):
            await registry.remove("user-u")

        assert catalog.count_owned_by("user-u") == 1

    @pytest.mark.asyncio
    async def test_login_after_logout(self, registry):
        await registry.register("user-a", "10.0.0.1:5000")
        await registry.remove("user-a")

        session = await registry.register("user-a", "10.0.0.3:5000")
        assert session.endpoint == "10.0.0.3:5000"


class TestExpiry:
    @pytest.mark.asyncio
    async def test_expire_stale_removes_only_expired(self, registry, catalog):
        _insert_stale_session("stale", "10.0.0.1:5000")
        await registry.register("fresh", "10.0.0.2:5000")
        await catalog.record_uploads(["s.txt"], "stale")
        await catalog.record_uploads(["f.txt"], "fresh")

        expired = await registry.expire_stale()

        assert expired == 1
        assert registry.count() == 1
        assert catalog.count_owned_by("stale") == 0
        assert catalog.count_owned_by("fresh") == 1

    @pytest.mark.asyncio
    async def test_reset_drops_sessions_and_their_files(self, registry, catalog):
        await registry.register("user-a", "10.0.0.1:5000")
        await catalog.record_uploads(["a.txt"], "user-a")

        dropped = registry.reset()

        assert dropped == 1
        assert registry.count() == 0
        assert catalog.count_owned_by("user-a") == 0

    @pytest.mark.asyncio
    async def test_background_task_sweeps(self, registry, catalog):
        _insert_stale_session("stale", "10.0.0.1:5000")
        await catalog.record_uploads(["s.txt"], "stale")

        task = SessionExpiryTask(registry, interval_seconds=0.01)
        await task.start()
        for _ in range(100):
            if registry.count() == 0:
                break
            await asyncio.sleep(0.01)
        await task.stop()

        assert registry.count() == 0
        assert catalog.is_withdrawn(1)
