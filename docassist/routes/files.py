"""Serves stored uploads back to their owner."""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from docassist.schemas.common import ErrorResponse
from docassist.security import OwnerContext, get_owner
from docassist.services.file_service import file_service

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{key:path}",
    response_class=FileResponse,
    responses={404: {"description": "File not found", "model": ErrorResponse}},
    summary="Download an uploaded file",
)
async def download_file(
    key: str,
    owner: OwnerContext = Depends(get_owner),
) -> FileResponse:
    path = file_service.resolve(owner, key)
    return FileResponse(path, filename=path.name)
