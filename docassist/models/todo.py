"""
Todo ORM model.

Lifecycle of deadline_notification_sent:
    False at creation → True once the deadline sweep has created its
    reminder. Status changes (including re-opening a completed todo) leave
    the flag untouched, so a todo is reminded about at most once.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from docassist.database import Base
from docassist.models.base import OwnedRecordMixin

TODO_STATUSES = ("pending", "in_progress", "completed", "cancelled")
OPEN_STATUSES = ("pending", "in_progress")
PRIORITIES = ("High", "Medium", "Low")


class Todo(OwnedRecordMixin, Base):
    __tablename__ = "todos"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="Medium",
        server_default=text("'Medium'"),
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deadline_notification_sent: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    # Where the todo came from: "manual" or "auto_detected"
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="manual")
    source_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # "document", "note", "audio", "chat", ...
    source_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    folder_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        # Deadline sweep: WHERE user_id = ? AND status IN (...) AND NOT deadline_notification_sent
        Index("idx_todos_deadline_sweep", "user_id", "status", "deadline_notification_sent"),
    )

    def __repr__(self) -> str:
        return f"<Todo(id={self.id}, status='{self.status}', due_date={self.due_date})>"
