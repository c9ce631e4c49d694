"""
Document AI Assistant — Folder Service
=======================================

What:  Owner-scoped folder persistence on top of the pure FolderSnapshot.
Who:   Called by the /api/folders routes, the content services (folder
       placement), classification (folder patterns) and the meeting pipeline.

Invariant-protecting operations:
    move()   → FolderCycleError when the new parent is the folder itself or
               one of its descendants. Checked before any write; nothing is
               mutated on rejection.
    delete() → FolderNotEmptyError when a child folder or any document, note
               or audio item still points at the folder. The check and the
               delete are separate statements (not atomic).
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.exceptions import FolderCycleError, FolderNotEmptyError, NotFoundError, ValidationError
from docassist.models import Audio, Document, Folder, Note
from docassist.schemas.folder import (
    FolderCreate,
    FolderPathResponse,
    FolderResponse,
    FolderStatsResponse,
    FolderTreeNode,
    FolderUpdate,
)
from docassist.security import OwnerContext
from docassist.services.base import database_errors
from docassist.services.folder_tree import (
    ContentCounts,
    FolderNode,
    FolderSnapshot,
    count_contents,
    tally_contents,
)

logger = logging.getLogger(__name__)

UNASSIGNED_ARTIFACT = "Unassigned"


class FolderService:
    """
    Folder CRUD plus the tree/path/cycle queries.

    Every public method takes the caller's OwnerContext; rows belonging to
    another owner behave exactly like missing rows (NotFoundError).
    """

    # ── Loading ───────────────────────────────────────────────────────────

    async def list_rows(self, db: AsyncSession, owner: OwnerContext) -> List[Folder]:
        with database_errors("load folders", owner=str(owner.user_id)):
            result = await db.execute(
                select(Folder)
                .where(Folder.user_id == owner.user_id)
                .order_by(Folder.name, Folder.id)
            )
            return list(result.scalars().all())

    async def load_snapshot(self, db: AsyncSession, owner: OwnerContext) -> FolderSnapshot:
        return FolderSnapshot(await self.list_rows(db, owner))

    async def get_owned(self, db: AsyncSession, owner: OwnerContext, folder_id: UUID) -> Folder:
        with database_errors("load folder", folder_id=str(folder_id)):
            result = await db.execute(
                select(Folder).where(Folder.id == folder_id, Folder.user_id == owner.user_id)
            )
            folder = result.scalar_one_or_none()
        if folder is None:
            raise NotFoundError(resource="folder", resource_id=str(folder_id))
        return folder

    async def require_owned_folder(
        self, db: AsyncSession, owner: OwnerContext, folder_id: Optional[UUID]
    ) -> Optional[Folder]:
        """Placement target check: None means "unfiled", otherwise the folder must be owned."""
        if folder_id is None:
            return None
        return await self.get_owned(db, owner, folder_id)

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_folders(self, db: AsyncSession, owner: OwnerContext) -> List[FolderResponse]:
        rows = await self.list_rows(db, owner)
        return [FolderResponse.model_validate(row) for row in rows]

    async def get_folder(
        self, db: AsyncSession, owner: OwnerContext, folder_id: UUID
    ) -> FolderResponse:
        return FolderResponse.model_validate(await self.get_owned(db, owner, folder_id))

    async def get_tree(self, db: AsyncSession, owner: OwnerContext) -> List[FolderTreeNode]:
        """Folder forest with per-folder counts of directly assigned items."""
        snapshot = await self.load_snapshot(db, owner)

        placements = {}
        with database_errors("count folder contents", owner=str(owner.user_id)):
            for model in (Document, Note, Audio):
                result = await db.execute(
                    select(model.folder_id).where(
                        model.user_id == owner.user_id,
                        model.folder_id.is_not(None),
                    )
                )
                placements[model] = result.all()

        counts = tally_contents(placements[Document], placements[Note], placements[Audio])
        return [self._to_tree_node(node, counts) for node in snapshot.build_tree()]

    def _to_tree_node(self, node: FolderNode, counts: Dict[UUID, ContentCounts]) -> FolderTreeNode:
        folder_counts = counts.get(node.id, ContentCounts())
        return FolderTreeNode(
            id=node.record.id,
            name=node.record.name,
            parent_id=node.record.parent_id,
            safe_artifact=node.record.safe_artifact,
            document_count=folder_counts.document_count,
            note_count=folder_counts.note_count,
            audio_count=folder_counts.audio_count,
            children=[self._to_tree_node(child, counts) for child in node.children],
        )

    async def search(
        self, db: AsyncSession, owner: OwnerContext, query: str
    ) -> List[FolderResponse]:
        """Case-insensitive substring match on the folder name."""
        term = (query or "").strip()
        if not term:
            raise ValidationError(message="Search query is required", field="q")

        with database_errors("search folders", owner=str(owner.user_id)):
            result = await db.execute(
                select(Folder)
                .where(
                    Folder.user_id == owner.user_id,
                    func.lower(Folder.name).contains(term.lower(), autoescape=True),
                )
                .order_by(Folder.name, Folder.id)
            )
            rows = result.scalars().all()
        return [FolderResponse.model_validate(row) for row in rows]

    async def stats(self, db: AsyncSession, owner: OwnerContext) -> FolderStatsResponse:
        snapshot = await self.load_snapshot(db, owner)
        by_artifact: Dict[str, int] = {}
        for record in snapshot.records:
            key = record.safe_artifact or UNASSIGNED_ARTIFACT
            by_artifact[key] = by_artifact.get(key, 0) + 1
        return FolderStatsResponse(
            total_folders=len(snapshot),
            root_folders=len(snapshot.root_ids),
            by_artifact=by_artifact,
        )

    async def get_path(
        self, db: AsyncSession, owner: OwnerContext, folder_id: UUID
    ) -> FolderPathResponse:
        rows = {row.id: row for row in await self.list_rows(db, owner)}
        snapshot = FolderSnapshot(rows.values())
        if folder_id not in snapshot:
            raise NotFoundError(resource="folder", resource_id=str(folder_id))

        chain = snapshot.ancestors(folder_id)
        return FolderPathResponse(
            folder_id=folder_id,
            path=snapshot.resolve_path(folder_id),
            ancestors=[FolderResponse.model_validate(rows[record.id]) for record in chain],
        )

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(
        self, db: AsyncSession, owner: OwnerContext, data: FolderCreate
    ) -> FolderResponse:
        folder = await self.create_row(
            db, owner, name=data.name, parent_id=data.parent_id, safe_artifact=data.safe_artifact
        )
        return FolderResponse.model_validate(folder)

    async def create_row(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        name: str,
        parent_id: Optional[UUID] = None,
        safe_artifact: Optional[str] = None,
    ) -> Folder:
        name = (name or "").strip()
        if not name:
            raise ValidationError(message="Folder name is required", field="name")
        if parent_id is not None:
            await self.get_owned(db, owner, parent_id)

        folder = Folder(
            user_id=owner.user_id,
            name=name[:255],
            parent_id=parent_id,
            safe_artifact=safe_artifact,
        )
        with database_errors("create folder", owner=str(owner.user_id)):
            db.add(folder)
            await db.flush()
            await db.refresh(folder)
        logger.info("Folder created: %s '%s' (parent=%s)", folder.id, folder.name, parent_id)
        return folder

    async def update(
        self, db: AsyncSession, owner: OwnerContext, folder_id: UUID, data: FolderUpdate
    ) -> FolderResponse:
        folder = await self.get_owned(db, owner, folder_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError(message="Folder name is required", field="name")

        for attr, value in changes.items():
            setattr(folder, attr, value)
        with database_errors("update folder", folder_id=str(folder_id)):
            await db.flush()
            await db.refresh(folder)
        return FolderResponse.model_validate(folder)

    async def move(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        folder_id: UUID,
        new_parent_id: Optional[UUID],
    ) -> FolderResponse:
        """Reparents a folder; new_parent_id=None moves it to the root."""
        folder = await self.get_owned(db, owner, folder_id)
        if new_parent_id is not None:
            await self.get_owned(db, owner, new_parent_id)

        snapshot = await self.load_snapshot(db, owner)
        if snapshot.would_create_cycle(folder_id, new_parent_id):
            logger.info("Rejected folder move %s → %s: cycle", folder_id, new_parent_id)
            raise FolderCycleError(folder_id=str(folder_id), new_parent_id=str(new_parent_id))

        folder.parent_id = new_parent_id
        with database_errors("move folder", folder_id=str(folder_id)):
            await db.flush()
            await db.refresh(folder)
        logger.info("Folder %s moved under %s", folder_id, new_parent_id or "root")
        return FolderResponse.model_validate(folder)

    async def delete(self, db: AsyncSession, owner: OwnerContext, folder_id: UUID) -> None:
        folder = await self.get_owned(db, owner, folder_id)

        with database_errors("check folder contents", folder_id=str(folder_id)):
            result = await db.execute(
                select(func.count()).select_from(Folder).where(Folder.parent_id == folder_id)
            )
            subfolders = result.scalar_one()
            if subfolders:
                raise FolderNotEmptyError("subfolders", {"subfolder_count": subfolders})

            placements = []
            for model in (Document, Note, Audio):
                result = await db.execute(
                    select(model.folder_id).where(model.folder_id == folder_id)
                )
                placements.append(result.all())

        counts = count_contents(folder_id, *placements)
        if counts.total:
            raise FolderNotEmptyError(
                "content",
                {
                    "document_count": counts.document_count,
                    "note_count": counts.note_count,
                    "audio_count": counts.audio_count,
                },
            )

        with database_errors("delete folder", folder_id=str(folder_id)):
            await db.delete(folder)
            await db.flush()
        logger.info("Folder deleted: %s", folder_id)

    async def get_or_create(self, db: AsyncSession, owner: OwnerContext, name: str) -> Folder:
        """Root folder with this exact name, created on first use."""
        with database_errors("load folder", name=name):
            result = await db.execute(
                select(Folder)
                .where(
                    Folder.user_id == owner.user_id,
                    Folder.name == name,
                    Folder.parent_id.is_(None),
                )
                .order_by(Folder.created_at)
                .limit(1)
            )
            folder = result.scalar_one_or_none()
        if folder is not None:
            return folder
        return await self.create_row(db, owner, name=name)


# ── Singleton Instance ────────────────────────────────────────────────────
folder_service = FolderService()
