"""
Note Route Handlers
===================

What:  /api/notes: CRUD and folder placement for meeting notes.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.database import get_db_session
from docassist.schemas.common import ErrorResponse
from docassist.schemas.content import FolderAssignment, NoteCreate, NoteResponse, NoteUpdate
from docassist.security import OwnerContext, get_owner
from docassist.services.content_service import note_service

router = APIRouter(prefix="/api/notes", tags=["Notes"])

NOT_FOUND = {404: {"description": "Note or folder not found", "model": ErrorResponse}}


@router.get("", response_model=List[NoteResponse], summary="List notes")
async def list_notes(
    folder_id: Optional[UUID] = Query(default=None),
    unfiled: bool = Query(default=False),
    q: Optional[str] = Query(default=None, max_length=200),
    limit: int = Query(default=100, ge=1, le=500),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.list_items(
        db, owner, folder_id=folder_id, unfiled=unfiled, query=q, limit=limit
    )


@router.post(
    "",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create(db, owner, payload)


@router.get("/{note_id}", response_model=NoteResponse, responses=NOT_FOUND)
async def get_note(
    note_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.get(db, owner, note_id)


@router.put("/{note_id}", response_model=NoteResponse, responses=NOT_FOUND)
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update(db, owner, note_id, payload)


@router.patch("/{note_id}/folder", response_model=NoteResponse, responses=NOT_FOUND)
async def move_note(
    note_id: UUID,
    payload: FolderAssignment,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.move_to_folder(db, owner, note_id, payload.folder_id)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_note(
    note_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete(db, owner, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
