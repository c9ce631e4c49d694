"""
Content item ORM models: Document, Note, Audio.

Each item optionally sits in one folder (many items per folder). Items never
own their folder; FolderService refuses to delete a folder that still has
items pointing at it.

List-valued fields (tags, participants, linked_docs) are JSON arrays so the
same model runs on PostgreSQL and SQLite.
"""

import uuid
from typing import List, Optional

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docassist.database import Base
from docassist.models.base import OwnedRecordMixin


def _folder_fk() -> Mapped[Optional[uuid.UUID]]:
    return mapped_column(
        Uuid,
        ForeignKey("folders.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )


class Document(OwnedRecordMixin, Base):
    """An uploaded or generated document (transcripts and summaries included)."""

    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Empty for generated documents (transcripts, summaries)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    file_type: Mapped[str] = mapped_column(String(20), nullable=False, default="txt")
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    artifact_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    priority: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    folder_id: Mapped[Optional[uuid.UUID]] = _folder_fk()

    __table_args__ = (Index("idx_documents_user_updated", "user_id", "updated_at"),)


class Note(OwnedRecordMixin, Base):
    """A written meeting or working note."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    template: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    meeting_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    participants: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    # Ids of documents this note refers to
    linked_docs: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    folder_id: Mapped[Optional[uuid.UUID]] = _folder_fk()

    __table_args__ = (Index("idx_notes_user_updated", "user_id", "updated_at"),)


class Audio(OwnedRecordMixin, Base):
    """A meeting recording; transcription is filled in by the meeting pipeline."""

    __tablename__ = "audios"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    # Seconds
    duration: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    transcription: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meeting_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    participants: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    folder_id: Mapped[Optional[uuid.UUID]] = _folder_fk()

    __table_args__ = (Index("idx_audios_user_updated", "user_id", "updated_at"),)


CONTENT_MODELS = (Document, Note, Audio)
