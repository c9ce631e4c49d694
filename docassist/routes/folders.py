"""
Folder Route Handlers
=====================

What:  /api/folders: list, tree, search, stats, CRUD, path and move.
How:   HTTP only. Every handler resolves the caller with get_owner and
       delegates to FolderService.

Conflict responses (409):
    folder_cycle      → move target is the folder itself or a descendant
    folder_not_empty  → delete of a folder with subfolders or content
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.database import get_db_session
from docassist.schemas.common import ErrorResponse
from docassist.schemas.folder import (
    FolderCreate,
    FolderMove,
    FolderPathResponse,
    FolderResponse,
    FolderStatsResponse,
    FolderTreeNode,
    FolderUpdate,
)
from docassist.security import OwnerContext, get_owner
from docassist.services.folder_service import folder_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["Folders"])

NOT_FOUND = {404: {"description": "Folder not found", "model": ErrorResponse}}
CONFLICT = {409: {"description": "Folder structure rule violated", "model": ErrorResponse}}


@router.get("", response_model=List[FolderResponse], summary="List folders ordered by name")
async def list_folders(
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[FolderResponse]:
    return await folder_service.list_folders(db, owner)


@router.get(
    "/tree",
    response_model=List[FolderTreeNode],
    summary="Folder forest with content counts",
)
async def folder_tree(
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[FolderTreeNode]:
    """
    Nested folders, siblings sorted by name. Each node carries the number of
    documents, notes and recordings filed directly in it.
    """
    return await folder_service.get_tree(db, owner)


@router.get("/search", response_model=List[FolderResponse], summary="Search folders by name")
async def search_folders(
    q: str = Query(default="", max_length=255, description="Case-insensitive name fragment"),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[FolderResponse]:
    return await folder_service.search(db, owner, q)


@router.get("/stats", response_model=FolderStatsResponse, summary="Folder counts by SAFe artifact")
async def folder_stats(
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderStatsResponse:
    return await folder_service.stats(db, owner)


@router.post(
    "",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Create a folder",
)
async def create_folder(
    payload: FolderCreate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.create(db, owner, payload)


@router.get("/{folder_id}", response_model=FolderResponse, responses=NOT_FOUND)
async def get_folder(
    folder_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.get_folder(db, owner, folder_id)


@router.get(
    "/{folder_id}/path",
    response_model=FolderPathResponse,
    responses=NOT_FOUND,
    summary='Ancestor chain and "A > B > C" path',
)
async def folder_path(
    folder_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderPathResponse:
    return await folder_service.get_path(db, owner, folder_id)


@router.patch(
    "/{folder_id}",
    response_model=FolderResponse,
    responses=NOT_FOUND,
    summary="Rename a folder or change its SAFe artifact",
)
async def update_folder(
    folder_id: UUID,
    payload: FolderUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.update(db, owner, folder_id, payload)


@router.post(
    "/{folder_id}/move",
    response_model=FolderResponse,
    responses={**NOT_FOUND, **CONFLICT},
    summary="Reparent a folder (null parent moves it to the root)",
)
async def move_folder(
    folder_id: UUID,
    payload: FolderMove,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.move(db, owner, folder_id, payload.parent_id)


@router.delete(
    "/{folder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
    summary="Delete an empty folder",
)
async def delete_folder(
    folder_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await folder_service.delete(db, owner, folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
