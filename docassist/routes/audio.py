"""
Audio Route Handlers
====================

What:  /api/audio: recording upload, CRUD, folder placement and the
       transcription → summary meeting pipeline.

Pipeline endpoints receive the session factory rather than a request
session: each pipeline step commits on its own, so a failed summary still
leaves the saved transcription and transcript document behind.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docassist.database import get_db_session, get_session_factory
from docassist.schemas.common import ErrorResponse
from docassist.schemas.content import (
    AudioResponse,
    AudioUpdate,
    FolderAssignment,
    MeetingPipelineResponse,
)
from docassist.security import OwnerContext, get_owner
from docassist.services.content_service import audio_service
from docassist.services.file_service import file_service
from docassist.services.meeting_service import meeting_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/audio", tags=["Audio"])

NOT_FOUND = {404: {"description": "Recording or folder not found", "model": ErrorResponse}}
AI_FAILURE = {500: {"description": "AI service failure or malformed AI output", "model": ErrorResponse}}


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@router.post(
    "",
    response_model=AudioResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Unsupported or oversized file", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Upload a meeting recording",
)
async def upload_audio(
    request: Request,
    file: UploadFile = File(..., description="Recording (mp3, wav, m4a, mp4, webm)"),
    title: Optional[str] = Form(default=None, max_length=500),
    duration: float = Form(default=0, ge=0),
    meeting_type: Optional[str] = Form(default=None, max_length=50),
    participants: str = Form(default="", description="Comma-separated names"),
    folder_id: Optional[UUID] = Form(default=None),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> AudioResponse:
    raw = await file.read()
    content_length = request.headers.get("content-length")
    key = await file_service.store_audio(
        owner,
        filename=file.filename or "",
        content=raw,
        content_length=int(content_length) if content_length and content_length.isdigit() else None,
    )
    try:
        audio = await audio_service.create_row(
            db,
            owner,
            title=(title or "").strip() or (file.filename or "Untitled recording"),
            file_url=file_service.url_for(key),
            duration=duration,
            meeting_type=meeting_type,
            participants=_split_csv(participants),
            folder_id=folder_id,
        )
    except Exception:
        await file_service.cleanup_file(key)
        raise
    return audio_service.to_response(audio)


@router.get("", response_model=List[AudioResponse], summary="List recordings")
async def list_audio(
    folder_id: Optional[UUID] = Query(default=None),
    unfiled: bool = Query(default=False),
    q: Optional[str] = Query(default=None, max_length=200),
    limit: int = Query(default=100, ge=1, le=500),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[AudioResponse]:
    return await audio_service.list_items(
        db, owner, folder_id=folder_id, unfiled=unfiled, query=q, limit=limit
    )


@router.get("/{audio_id}", response_model=AudioResponse, responses=NOT_FOUND)
async def get_audio(
    audio_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> AudioResponse:
    return await audio_service.get(db, owner, audio_id)


@router.put("/{audio_id}", response_model=AudioResponse, responses=NOT_FOUND)
async def update_audio(
    audio_id: UUID,
    payload: AudioUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> AudioResponse:
    return await audio_service.update(db, owner, audio_id, payload)


@router.patch("/{audio_id}/folder", response_model=AudioResponse, responses=NOT_FOUND)
async def move_audio(
    audio_id: UUID,
    payload: FolderAssignment,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> AudioResponse:
    return await audio_service.move_to_folder(db, owner, audio_id, payload.folder_id)


@router.delete("/{audio_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_audio(
    audio_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await audio_service.delete(db, owner, audio_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{audio_id}/transcribe",
    response_model=MeetingPipelineResponse,
    responses={**NOT_FOUND, **AI_FAILURE},
    summary="Transcribe a recording and generate its meeting summary",
)
async def transcribe_audio(
    audio_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> MeetingPipelineResponse:
    """
    Transcribes the stored file, saves the transcription on the recording,
    files a transcript document under "Transcribed Meetings" and a summary
    document under "Meeting Summaries". Folders are created on first use.
    """
    return await meeting_service.transcribe(session_factory, owner, audio_id)


@router.post(
    "/{audio_id}/summary",
    response_model=MeetingPipelineResponse,
    responses={
        400: {"description": "Recording has no transcription", "model": ErrorResponse},
        **NOT_FOUND,
        **AI_FAILURE,
    },
    summary="Regenerate the meeting summary from a saved transcription",
)
async def summarize_audio(
    audio_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> MeetingPipelineResponse:
    return await meeting_service.summarize(session_factory, owner, audio_id)
