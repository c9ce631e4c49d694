"""
Folder ORM model.

Folders form a forest per owner through a nullable parent pointer. The
no-cycle rule and the "delete only when empty" rule are enforced by
FolderService, not by database constraints: parent_id is deliberately not a
cascading foreign key so an accidental delete can never take a subtree with
it.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docassist.database import Base
from docassist.models.base import OwnedRecordMixin


class Folder(OwnedRecordMixin, Base):
    __tablename__ = "folders"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("folders.id", ondelete="RESTRICT"),
        nullable=True,
    )

    # SAFe artifact the folder collects (Epic, Feature, User Story, ...)
    safe_artifact: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("idx_folders_user_name", "user_id", "name"),
        Index("idx_folders_parent", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"
