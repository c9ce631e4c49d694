"""
Todo schemas, including the detection and bulk-create contracts.

Due dates are accepted either as full ISO datetimes or as plain
"YYYY-MM-DD" dates (the form LLM detection produces); a plain date means
midnight UTC of that day.
"""

import re
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

TodoStatus = Literal["pending", "in_progress", "completed", "cancelled"]
TodoPriority = Literal["High", "Medium", "Low"]

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date_only(value: Any) -> Optional[date]:
    """
    Returns the calendar date for a strict "YYYY-MM-DD" string, else None.

    Both the shape and the calendar are checked: "2024-13-45" is None.
    """
    if not isinstance(value, str) or not DATE_ONLY.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def date_to_utc_midnight(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _coerce_due_date(value: Any) -> Any:
    if isinstance(value, str):
        if value == "":
            return None
        if DATE_ONLY.match(value):
            parsed = parse_date_only(value)
            if parsed is None:
                raise ValueError("due_date is not a valid calendar date")
            return date_to_utc_midnight(parsed)
    return value


def _ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ══════════════════════════════════════════════════════════════════════════
# CRUD
# ══════════════════════════════════════════════════════════════════════════


class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    status: TodoStatus = "pending"
    priority: TodoPriority = "Medium"
    due_date: Optional[datetime] = None
    source: str = Field(default="manual", max_length=50)
    source_id: Optional[str] = Field(default=None, max_length=100)
    source_type: Optional[str] = Field(default=None, max_length=50)
    folder_id: Optional[uuid.UUID] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Title is required")
        return stripped

    @field_validator("due_date", mode="before")
    @classmethod
    def accept_plain_date(cls, v: Any) -> Any:
        return _coerce_due_date(v)

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _ensure_aware(v)


class TodoUpdate(BaseModel):
    """Partial update; deadline_notification_sent is never client-writable."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TodoStatus] = None
    priority: Optional[TodoPriority] = None
    due_date: Optional[datetime] = None
    folder_id: Optional[uuid.UUID] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Title is required")
        return stripped

    @field_validator("due_date", mode="before")
    @classmethod
    def accept_plain_date(cls, v: Any) -> Any:
        return _coerce_due_date(v)

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _ensure_aware(v)


class TodoResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    deadline_notification_sent: bool
    source: str
    source_id: Optional[str] = None
    source_type: Optional[str] = None
    folder_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Detection / bulk creation
# ══════════════════════════════════════════════════════════════════════════


class TodoDetectRequest(BaseModel):
    content: str = Field(min_length=1, description="Text to scan for action items")
    source_id: Optional[str] = None
    source_type: Optional[str] = None


class DetectedTodo(BaseModel):
    """A validated candidate; not persisted until the client confirms it."""
    title: str
    description: Optional[str] = None
    priority: TodoPriority = "Medium"
    due_date: Optional[str] = Field(default=None, description="YYYY-MM-DD or null")
    source: str = "auto_detected"
    source_id: Optional[str] = None
    source_type: Optional[str] = None


class TodoDetectResponse(BaseModel):
    todos: List[DetectedTodo]
    count: int


class TodoBulkRequest(BaseModel):
    """
    Loosely-typed items: each is filtered individually, invalid ones are
    dropped instead of failing the whole request.
    """
    todos: List[Dict[str, Any]]


class TodoBulkResponse(BaseModel):
    message: str = "Todos created successfully"
    todos: List[TodoResponse]
    count: int
