"""API routes package."""

from coordinator.routes.auth_routes import router as auth_router
from coordinator.routes.session_routes import router as session_router
from coordinator.routes.file_routes import router as file_router

__all__ = ["auth_router", "session_router", "file_router"]
