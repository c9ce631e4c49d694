"""
Folder request/response schemas.

Tree nodes are built from the in-memory FolderSnapshot, so they carry the
aggregated content counts alongside the folder fields.
"""

import uuid
from datetime import datetime
from typing import Annotated, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


def _clean_name(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("Folder name is required")
    return stripped


FolderName = Annotated[str, Field(max_length=255), AfterValidator(_clean_name)]


class FolderCreate(BaseModel):
    name: FolderName = Field(description="Display name (trimmed, non-empty)")
    parent_id: Optional[uuid.UUID] = Field(default=None, description="Parent folder; null for a root")
    safe_artifact: Optional[str] = Field(default=None, max_length=100)


class FolderUpdate(BaseModel):
    """Rename and/or retag a folder. Reparenting goes through /move."""
    name: Optional[FolderName] = None
    safe_artifact: Optional[str] = Field(default=None, max_length=100)


class FolderMove(BaseModel):
    parent_id: Optional[uuid.UUID] = Field(
        default=None, description="New parent folder; null moves the folder to the root"
    )


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class FolderResponse(BaseModel):
    id: uuid.UUID
    name: str
    parent_id: Optional[uuid.UUID] = None
    safe_artifact: Optional[str] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FolderTreeNode(BaseModel):
    id: uuid.UUID
    name: str
    parent_id: Optional[uuid.UUID] = None
    safe_artifact: Optional[str] = None
    document_count: int = 0
    note_count: int = 0
    audio_count: int = 0
    children: List["FolderTreeNode"] = Field(default_factory=list)


class FolderPathResponse(BaseModel):
    folder_id: uuid.UUID
    path: str = Field(description='Ancestor names joined by " > "')
    ancestors: List[FolderResponse] = Field(description="Root first, the folder itself last")


class FolderStatsResponse(BaseModel):
    total_folders: int
    root_folders: int
    by_artifact: Dict[str, int] = Field(
        description='Folder count per SAFe artifact; untagged folders under "Unassigned"'
    )


FolderTreeNode.model_rebuild()
