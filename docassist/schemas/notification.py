"""
Notification and chat-history schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ── Notifications ─────────────────────────────────────────────────────────


class NotificationCreate(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=255)
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class NotificationReadUpdate(BaseModel):
    read: bool = True


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    type: str
    title: str
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class DeadlineSweepResponse(BaseModel):
    message: str
    notifications: List[NotificationResponse]
    count: int


# ── Chat history ──────────────────────────────────────────────────────────


class ChatSave(BaseModel):
    """Creates a chat when chat_id is absent, otherwise replaces its messages."""
    chat_id: Optional[uuid.UUID] = None
    messages: List[Dict[str, Any]] = Field(min_length=1)
    context: List[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    messages: List[Dict[str, Any]]
    context: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Assistant chat ────────────────────────────────────────────────────────


class ChatMessageRequest(BaseModel):
    message: str = Field(min_length=1)
    # Optional echo of the caller's id; must match the token when present
    user_id: Optional[str] = None
    provider: Optional[str] = Field(default=None, description="gemini or anthropic")


class ChatReply(BaseModel):
    response: str
    created_folders: List[str] = Field(default_factory=list)
    created_todos: List[str] = Field(default_factory=list)
    context: Dict[str, int] = Field(
        default_factory=dict,
        description="How many items of each kind were supplied to the model",
    )
