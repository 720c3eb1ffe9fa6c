"""Service locator for the Coordinator's shared components."""

from typing import Optional

from coordinator.config import SESSION_TTL
from coordinator.credentials import CredentialStore
from coordinator.file_catalog import FileCatalog
from coordinator.locks import UserLockTable
from coordinator.resolver import LocationResolver
from coordinator.session_registry import ActiveSessionRegistry

_locks: Optional[UserLockTable] = None
_catalog: Optional[FileCatalog] = None
_registry: Optional[ActiveSessionRegistry] = None
_resolver: Optional[LocationResolver] = None
_credentials: Optional[CredentialStore] = None


def configure(session_ttl: int = SESSION_TTL) -> None:
    """Build a fresh set of components sharing one lock table."""
    global _locks, _catalog, _registry, _resolver, _credentials
    _locks = UserLockTable()
    _catalog = FileCatalog(_locks)
    _registry = ActiveSessionRegistry(_locks, _catalog, ttl_seconds=session_ttl)
    _resolver = LocationResolver(_locks, _catalog, _registry)
    _credentials = CredentialStore()


def reset() -> None:
    """Forget all components; the next getter call rebuilds them."""
    global _locks, _catalog, _registry, _resolver, _credentials
    _locks = _catalog = _registry = _resolver = _credentials = None


def _ensure_configured() -> None:
    if _locks is None:
        configure()


def get_file_catalog() -> FileCatalog:
    """Get global file catalog instance"""
    _ensure_configured()
    return _catalog


def get_session_registry() -> ActiveSessionRegistry:
    """Get global session registry instance"""
    _ensure_configured()
    return _registry


def get_resolver() -> LocationResolver:
    """Get global location resolver instance"""
    _ensure_configured()
    return _resolver


def get_credential_store() -> CredentialStore:
    """Get global credential store instance"""
    _ensure_configured()
    return _credentials
