"""File catalog API routes."""

from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse

from coordinator.schemas.files import (
    RegisterFilesRequest,
    FileRecordResponse,
    FileListResponse,
    FileLocationResponse
)
from coordinator.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["Files"])


def _to_list_response(records) -> FileListResponse:
    return FileListResponse(files=[
        FileRecordResponse(file_id=record.file_id, filename=record.filename, owner_id=record.owner_id)
        for record in records
    ])


@router.post("", response_model=FileListResponse, status_code=status.HTTP_201_CREATED)
async def register_files(request: RegisterFilesRequest):
    """
    Record files a peer has just stored locally. All or nothing.

    Parameters:
        - owner_id: Uploading user (must hold an active session)
        - filenames: Original names of the uploaded files

    Raises:
        - 400: Empty list or invalid filename
        - 401: Owner has no active session
        - 500: Catalog write failed (nothing recorded)
    """
    records = await FileService().register_files(request.filenames, request.owner_id)
    return _to_list_response(records)


@router.get("/search", response_model=FileListResponse)
async def search_files(keyword: str = Query("", description="Case-insensitive substring of the filename")):
    """
    Search the catalog by filename. An empty keyword lists every file.
    """
    return _to_list_response(FileService().search(keyword))


@router.get("/{file_id}/location", response_model=FileLocationResponse)
async def get_file_location(file_id: int):
    """
    Resolve a file to the endpoint of the peer currently holding it.

    Raises:
        - 404: Unknown file id
        - 503: Owner offline
    """
    location = await FileService().resolve_file(file_id)
    return FileLocationResponse(
        file_id=location.file_id,
        endpoint=location.endpoint,
        filename=location.filename,
        url=location.url,
    )


@router.get("/{file_id}")
async def redirect_to_file(file_id: int):
    """
    Resolve a file and redirect to the owning peer's file-serving endpoint.

    Raises:
        - 404: Unknown file id
        - 503: Owner offline
    """
    location = await FileService().resolve_file(file_id)
    return RedirectResponse(location.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
