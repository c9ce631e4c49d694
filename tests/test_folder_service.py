"""
Document AI Assistant — Folder Service Tests
=============================================

Runs FolderService against a throwaway SQLite database.

What we test:
    ✅ Create/update with owner checks on the parent
    ✅ Moves into a descendant are rejected without changing anything
    ✅ Delete guard: subfolders and directly filed content block deletion
    ✅ Tree counts, search, stats, path and get_or_create
    ✅ Folders of another owner are invisible
    ✅ Content search treats % and _ literally
"""

from uuid import uuid4

import pydantic
import pytest

from docassist.exceptions import (
    FolderCycleError,
    FolderNotEmptyError,
    NotFoundError,
    ValidationError,
)
from docassist.schemas.folder import FolderCreate, FolderUpdate
from docassist.services.content_service import document_service, note_service
from docassist.services.folder_service import folder_service


async def _create(session, owner, name, parent=None, artifact=None):
    return await folder_service.create(
        session,
        owner,
        FolderCreate(name=name, parent_id=parent.id if parent else None, safe_artifact=artifact),
    )


class TestCreateAndUpdate:
    async def test_create_root_and_child(self, session, owner):
        root = await _create(session, owner, "  Program  ")
        child = await _create(session, owner, "Epics", root)

        assert root.name == "Program"
        assert child.parent_id == root.id
        assert child.user_id == owner.user_id

    async def test_parent_must_belong_to_caller(self, session, owner, other_owner):
        foreign = await _create(session, other_owner, "Theirs")

        with pytest.raises(NotFoundError):
            await _create(session, owner, "Mine", foreign)

    def test_blank_name_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            FolderCreate(name="   ")

    async def test_create_row_rejects_blank_name(self, session, owner):
        with pytest.raises(ValidationError):
            await folder_service.create_row(session, owner, name="  ")

    async def test_update_renames(self, session, owner):
        folder = await _create(session, owner, "Old")

        updated = await folder_service.update(
            session, owner, folder.id, FolderUpdate(name="New", safe_artifact="Epic")
        )

        assert updated.name == "New"
        assert updated.safe_artifact == "Epic"

    async def test_other_owner_cannot_read(self, session, owner, other_owner):
        folder = await _create(session, owner, "Private")

        with pytest.raises(NotFoundError):
            await folder_service.get_folder(session, other_owner, folder.id)
        assert await folder_service.list_folders(session, other_owner) == []


class TestMove:
    async def test_move_into_descendant_rejected(self, session, owner):
        root = await _create(session, owner, "Root")
        child = await _create(session, owner, "Child", root)
        grandchild = await _create(session, owner, "Grandchild", child)

        with pytest.raises(FolderCycleError):
            await folder_service.move(session, owner, root.id, grandchild.id)

        unchanged = await folder_service.get_folder(session, owner, root.id)
        assert unchanged.parent_id is None

    async def test_move_into_itself_rejected(self, session, owner):
        root = await _create(session, owner, "Root")

        with pytest.raises(FolderCycleError):
            await folder_service.move(session, owner, root.id, root.id)

    async def test_move_and_back_to_root(self, session, owner):
        a = await _create(session, owner, "A")
        b = await _create(session, owner, "B")

        moved = await folder_service.move(session, owner, b.id, a.id)
        assert moved.parent_id == a.id

        back = await folder_service.move(session, owner, b.id, None)
        assert back.parent_id is None

    async def test_move_under_unknown_parent(self, session, owner):
        folder = await _create(session, owner, "A")

        with pytest.raises(NotFoundError):
            await folder_service.move(session, owner, folder.id, uuid4())


class TestDelete:
    async def test_folder_with_subfolder_is_kept(self, session, owner):
        parent = await _create(session, owner, "Parent")
        await _create(session, owner, "Child", parent)

        with pytest.raises(FolderNotEmptyError) as exc_info:
            await folder_service.delete(session, owner, parent.id)

        assert "subfolders" in exc_info.value.message
        assert await folder_service.get_folder(session, owner, parent.id)

    async def test_folder_with_content_is_kept(self, session, owner):
        folder = await _create(session, owner, "Docs")
        await document_service.create_row(session, owner, title="Spec", folder_id=folder.id)

        with pytest.raises(FolderNotEmptyError) as exc_info:
            await folder_service.delete(session, owner, folder.id)

        assert exc_info.value.context["document_count"] == 1
        assert await folder_service.get_folder(session, owner, folder.id)

    async def test_empty_folder_is_deleted(self, session, owner):
        folder = await _create(session, owner, "Empty")

        await folder_service.delete(session, owner, folder.id)

        with pytest.raises(NotFoundError):
            await folder_service.get_folder(session, owner, folder.id)


class TestQueries:
    async def test_tree_counts_direct_content(self, session, owner):
        root = await _create(session, owner, "Root")
        child = await _create(session, owner, "Child", root)
        await document_service.create_row(session, owner, title="Doc", folder_id=root.id)
        await note_service.create_row(session, owner, title="Note", folder_id=child.id)
        await note_service.create_row(session, owner, title="Unfiled")

        tree = await folder_service.get_tree(session, owner)

        assert len(tree) == 1
        assert tree[0].document_count == 1
        assert tree[0].note_count == 0
        assert tree[0].children[0].note_count == 1

    async def test_search_is_case_insensitive(self, session, owner):
        await _create(session, owner, "Sprint Reviews")
        await _create(session, owner, "Epics")

        found = await folder_service.search(session, owner, "sprint")

        assert [f.name for f in found] == ["Sprint Reviews"]

    async def test_search_requires_query(self, session, owner):
        with pytest.raises(ValidationError):
            await folder_service.search(session, owner, "  ")

    async def test_stats(self, session, owner):
        root = await _create(session, owner, "Root", artifact="Epic")
        await _create(session, owner, "Child", root, artifact="Epic")
        await _create(session, owner, "Loose")

        stats = await folder_service.stats(session, owner)

        assert stats.total_folders == 3
        assert stats.root_folders == 2
        assert stats.by_artifact == {"Epic": 2, "Unassigned": 1}

    async def test_path(self, session, owner):
        a = await _create(session, owner, "A")
        b = await _create(session, owner, "B", a)
        c = await _create(session, owner, "C", b)

        result = await folder_service.get_path(session, owner, c.id)

        assert result.path == "A > B > C"
        assert [f.name for f in result.ancestors] == ["A", "B", "C"]

    async def test_get_or_create_reuses_root(self, session, owner):
        first = await folder_service.get_or_create(session, owner, "Meeting Summaries")
        second = await folder_service.get_or_create(session, owner, "Meeting Summaries")

        assert first.id == second.id


class TestContentSearch:
    async def test_matches_title_or_content_case_insensitively(self, session, owner):
        await document_service.create_row(session, owner, title="Roadmap", content="Q3 goals")
        await document_service.create_row(session, owner, title="Retro", content="went well")

        by_title = await document_service.list_items(session, owner, query="ROAD")
        by_content = await document_service.list_items(session, owner, query="goals")

        assert [d.title for d in by_title] == ["Roadmap"]
        assert [d.title for d in by_content] == ["Roadmap"]

    async def test_wildcards_are_literal(self, session, owner):
        await document_service.create_row(session, owner, title="Budget at 50% of plan")
        await document_service.create_row(session, owner, title="Budget review")
        await note_service.create_row(session, owner, title="file_name conventions")
        await note_service.create_row(session, owner, title="filename list")

        percent = await document_service.list_items(session, owner, query="50%")
        underscore = await note_service.list_items(session, owner, query="file_")

        assert [d.title for d in percent] == ["Budget at 50% of plan"]
        assert [n.title for n in underscore] == ["file_name conventions"]
