"""
Document, Note and Audio schemas.

Create/Update pairs follow one rule: Update fields are all optional and only
the fields actually sent are applied (model_dump(exclude_unset=True)).
Folder placement is changed only through the dedicated folder endpoints.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field


def _require_title(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("Title is required")
    return stripped


Title = Annotated[str, Field(max_length=500), AfterValidator(_require_title)]


class FolderAssignment(BaseModel):
    """Body of PATCH .../{id}/folder; null unfiles the item."""
    folder_id: Optional[uuid.UUID] = None


# ── Documents ─────────────────────────────────────────────────────────────


class DocumentCreate(BaseModel):
    title: Title
    content: str = ""
    file_url: str = ""
    file_type: str = Field(default="txt", max_length=20)
    file_size: int = Field(default=0, ge=0)
    tags: List[str] = Field(default_factory=list)
    artifact_type: Optional[str] = Field(default=None, max_length=100)
    priority: Optional[str] = Field(default=None, max_length=20)
    folder_id: Optional[uuid.UUID] = None


class DocumentUpdate(BaseModel):
    title: Optional[Title] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    artifact_type: Optional[str] = Field(default=None, max_length=100)
    priority: Optional[str] = Field(default=None, max_length=20)


class DocumentResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    file_url: str
    file_type: str
    file_size: int
    tags: List[str]
    artifact_type: Optional[str] = None
    priority: Optional[str] = None
    folder_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Notes ─────────────────────────────────────────────────────────────────


class NoteCreate(BaseModel):
    title: Title
    content: str = ""
    template: Optional[str] = Field(default=None, max_length=100)
    meeting_type: Optional[str] = Field(default=None, max_length=50)
    participants: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    linked_docs: List[str] = Field(default_factory=list)
    folder_id: Optional[uuid.UUID] = None


class NoteUpdate(BaseModel):
    title: Optional[Title] = None
    content: Optional[str] = None
    template: Optional[str] = Field(default=None, max_length=100)
    meeting_type: Optional[str] = Field(default=None, max_length=50)
    participants: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    linked_docs: Optional[List[str]] = None


class NoteResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    template: Optional[str] = None
    meeting_type: Optional[str] = None
    participants: List[str]
    tags: List[str]
    linked_docs: List[str]
    folder_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Audio ─────────────────────────────────────────────────────────────────


class AudioUpdate(BaseModel):
    title: Optional[Title] = None
    duration: Optional[float] = Field(default=None, ge=0)
    transcription: Optional[str] = None
    meeting_type: Optional[str] = Field(default=None, max_length=50)
    participants: Optional[List[str]] = None


class AudioResponse(BaseModel):
    id: uuid.UUID
    title: str
    file_url: str
    duration: float
    transcription: Optional[str] = None
    meeting_type: Optional[str] = None
    participants: List[str]
    folder_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MeetingPipelineResponse(BaseModel):
    """Rows produced by POST /api/audio/{id}/transcribe (or /summary)."""
    audio: AudioResponse
    transcript_document: Optional[DocumentResponse] = None
    summary_document: DocumentResponse
