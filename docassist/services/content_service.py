"""
Document AI Assistant — Content Services
=========================================

What:  Owner-scoped CRUD and folder placement for documents, notes and audio.
How:   One ContentService class parameterised by ORM model and response
       schema; the three singletons at the bottom are what routes import.

Folder placement rule (create and move):
    folder_id must name a folder owned by the caller (NotFoundError
    otherwise); None leaves the item unfiled.
"""

import logging
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.exceptions import NotFoundError
from docassist.models import Audio, Document, Note
from docassist.schemas.content import AudioResponse, DocumentResponse, NoteResponse
from docassist.security import OwnerContext
from docassist.services.base import database_errors
from docassist.services.file_service import FILES_URL_PREFIX, file_service
from docassist.services.folder_service import folder_service

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
ResponseT = TypeVar("ResponseT", bound=BaseModel)

DEFAULT_LIST_LIMIT = 100


class ContentService(Generic[ModelT, ResponseT]):
    def __init__(
        self,
        model: Type[ModelT],
        response_schema: Type[ResponseT],
        resource: str,
        searchable: Sequence[str] = ("title",),
    ):
        self.model = model
        self.response_schema = response_schema
        self.resource = resource
        self.searchable = searchable

    def to_response(self, row: ModelT) -> ResponseT:
        return self.response_schema.model_validate(row)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_rows(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        folder_id: Optional[UUID] = None,
        unfiled: bool = False,
        query: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[ModelT]:
        """Most recently updated first."""
        model = self.model
        stmt = select(model).where(model.user_id == owner.user_id)
        if unfiled:
            stmt = stmt.where(model.folder_id.is_(None))
        elif folder_id is not None:
            stmt = stmt.where(model.folder_id == folder_id)

        term = (query or "").strip()
        if term:
            stmt = stmt.where(
                or_(
                    *(
                        func.lower(getattr(model, column)).contains(
                            term.lower(), autoescape=True
                        )
                        for column in self.searchable
                    )
                )
            )

        stmt = stmt.order_by(model.updated_at.desc()).limit(limit)
        with database_errors(f"load {self.resource}s", owner=str(owner.user_id)):
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def list_items(self, db: AsyncSession, owner: OwnerContext, **filters: Any) -> List[ResponseT]:
        return [self.to_response(row) for row in await self.list_rows(db, owner, **filters)]

    async def get_row(self, db: AsyncSession, owner: OwnerContext, item_id: UUID) -> ModelT:
        with database_errors(f"load {self.resource}", item_id=str(item_id)):
            result = await db.execute(
                select(self.model).where(
                    self.model.id == item_id,
                    self.model.user_id == owner.user_id,
                )
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(resource=self.resource, resource_id=str(item_id))
        return row

    async def get(self, db: AsyncSession, owner: OwnerContext, item_id: UUID) -> ResponseT:
        return self.to_response(await self.get_row(db, owner, item_id))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_row(self, db: AsyncSession, owner: OwnerContext, **fields: Any) -> ModelT:
        await folder_service.require_owned_folder(db, owner, fields.get("folder_id"))
        row = self.model(user_id=owner.user_id, **fields)
        with database_errors(f"create {self.resource}", owner=str(owner.user_id)):
            db.add(row)
            await db.flush()
            await db.refresh(row)
        logger.info("%s created: %s", self.resource.capitalize(), row.id)
        return row

    async def create(self, db: AsyncSession, owner: OwnerContext, data: BaseModel) -> ResponseT:
        row = await self.create_row(db, owner, **data.model_dump())
        return self.to_response(row)

    async def update_row(
        self, db: AsyncSession, owner: OwnerContext, item_id: UUID, **changes: Any
    ) -> ModelT:
        row = await self.get_row(db, owner, item_id)
        for attr, value in changes.items():
            setattr(row, attr, value)
        with database_errors(f"update {self.resource}", item_id=str(item_id)):
            await db.flush()
            await db.refresh(row)
        return row

    async def update(
        self, db: AsyncSession, owner: OwnerContext, item_id: UUID, data: BaseModel
    ) -> ResponseT:
        row = await self.update_row(db, owner, item_id, **data.model_dump(exclude_unset=True))
        return self.to_response(row)

    async def move_to_folder(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        item_id: UUID,
        folder_id: Optional[UUID],
    ) -> ResponseT:
        row = await self.get_row(db, owner, item_id)
        await folder_service.require_owned_folder(db, owner, folder_id)
        row.folder_id = folder_id
        with database_errors(f"move {self.resource}", item_id=str(item_id)):
            await db.flush()
            await db.refresh(row)
        logger.info("%s %s moved to folder %s", self.resource.capitalize(), item_id, folder_id)
        return self.to_response(row)

    async def delete(self, db: AsyncSession, owner: OwnerContext, item_id: UUID) -> None:
        row = await self.get_row(db, owner, item_id)
        file_url = getattr(row, "file_url", "") or ""
        with database_errors(f"delete {self.resource}", item_id=str(item_id)):
            await db.delete(row)
            await db.flush()
        if file_url.startswith(f"{FILES_URL_PREFIX}{owner.user_id}/"):
            await file_service.cleanup_file(file_service.key_from_url(file_url))
        logger.info("%s deleted: %s", self.resource.capitalize(), item_id)


# ── Singleton Instances ───────────────────────────────────────────────────
document_service: ContentService[Document, DocumentResponse] = ContentService(
    Document, DocumentResponse, "document", searchable=("title", "content")
)
note_service: ContentService[Note, NoteResponse] = ContentService(
    Note, NoteResponse, "note", searchable=("title", "content")
)
audio_service: ContentService[Audio, AudioResponse] = ContentService(
    Audio, AudioResponse, "audio", searchable=("title", "transcription")
)
