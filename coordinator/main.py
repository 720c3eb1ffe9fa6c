"""Entry point for the Coordinator service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.constants import ErrorCode
from common.logging_config import setup_logging
from coordinator import service_locator
from coordinator.config import COORDINATOR_HOST, COORDINATOR_PORT
from coordinator.database import init_database
from coordinator.expiry_task import SessionExpiryTask
from coordinator.routes.auth_routes import router as auth_router
from coordinator.routes.session_routes import router as session_router
from coordinator.routes.file_routes import router as file_router
from coordinator.exceptions import (
    CoordinatorError,
    UserAlreadyExistsError,
    InvalidCredentialsError,
    SessionConflictError,
    SessionNotFoundError,
    InactiveSessionError,
    FileRecordNotFoundError,
    OwnerOfflineError,
    InvalidFilenameError,
    CatalogWriteError,
)

logger = setup_logging('coordinator')

app = FastAPI(
    title="PeerShare Coordinator",
    description="Directory service tracking which peer holds which file",
    version="1.0.0"
)

expiry_task = None


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database, drop sessions left over from a previous run and
    start the expiry sweep.
    """
    global expiry_task

    logger.info("Coordinator service starting up...")

    init_database()
    logger.info("Database initialized")

    service_locator.configure()
    registry = service_locator.get_session_registry()
    registry.reset()

    expiry_task = SessionExpiryTask(registry)
    await expiry_task.start()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop background tasks on application shutdown.
    """
    logger.info("Coordinator service shutting down...")

    if expiry_task:
        await expiry_task.stop()


def _error_response(request: Request, exc: Exception, status_code: int, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    if status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
    else:
        logger.warning(f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})


@app.exception_handler(UserAlreadyExistsError)
async def user_already_exists_handler(request: Request, exc: UserAlreadyExistsError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, ErrorCode.USER_ALREADY_EXISTS)


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, ErrorCode.INVALID_CREDENTIALS)


@app.exception_handler(SessionConflictError)
async def session_conflict_handler(request: Request, exc: SessionConflictError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, ErrorCode.SESSION_CONFLICT)


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, ErrorCode.SESSION_NOT_FOUND)


@app.exception_handler(InactiveSessionError)
async def inactive_session_handler(request: Request, exc: InactiveSessionError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, ErrorCode.INACTIVE_SESSION)


@app.exception_handler(FileRecordNotFoundError)
async def file_not_found_handler(request: Request, exc: FileRecordNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, ErrorCode.FILE_NOT_FOUND)


@app.exception_handler(OwnerOfflineError)
async def owner_offline_handler(request: Request, exc: OwnerOfflineError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, ErrorCode.OWNER_OFFLINE)


@app.exception_handler(InvalidFilenameError)
async def invalid_filename_handler(request: Request, exc: InvalidFilenameError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_FILENAME)


@app.exception_handler(CatalogWriteError)
async def catalog_write_handler(request: Request, exc: CatalogWriteError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.CATALOG_WRITE_FAILED)


@app.exception_handler(CoordinatorError)
async def coordinator_error_handler(request: Request, exc: CoordinatorError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR)


app.include_router(auth_router)
app.include_router(session_router)
app.include_router(file_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "PeerShare Coordinator API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Liveness probe with the number of currently active sessions.
    """
    registry = service_locator.get_session_registry()
    return {"status": "healthy", "service": "coordinator", "active_sessions": registry.count()}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "coordinator.main:app",
        host=COORDINATOR_HOST,
        port=COORDINATOR_PORT,
    )


if __name__ == "__main__":
    main()
