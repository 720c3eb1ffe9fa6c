"""HTTP endpoint serving this node's uploaded files to other peers."""

from urllib.parse import quote

from fastapi import FastAPI, HTTPException, status
from fastapi.responses import StreamingResponse

from common.logging_config import get_logger
from peer.storage import LocalFileStore

logger = get_logger(__name__)


def create_file_server_app(store: LocalFileStore) -> FastAPI:
    """
    Build the file-serving application for a local store.

    Serving is unauthenticated: any peer that resolved a file through the
    Coordinator may fetch it.
    """
    app = FastAPI(
        title="PeerShare Peer",
        description="Streams files owned by this node",
        version="1.0.0",
    )

    @app.get("/files/{filename}")
    async def serve_file(filename: str):
        """
        Stream a file by catalog filename (newest upload wins) or local name.

        Raises:
            - 404: No such file held by this node
        """
        filepath = store.resolve_served_path(filename)
        if filepath is None:
            logger.warning(f"Requested file not held locally: {filename!r}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"File not found: {filename}",
            )

        size = filepath.stat().st_size
        logger.info(f"Serving {filename!r} from {filepath.name} ({size} bytes)")

        return StreamingResponse(
            store.read_streaming(filepath),
            media_type="application/octet-stream",
            headers={
                "Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}",
                "Content-Length": str(size),
            }
        )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "peer", "files": store.index.count()}

    return app
