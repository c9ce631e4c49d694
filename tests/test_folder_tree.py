"""
Document AI Assistant — Folder Hierarchy Unit Tests
====================================================

What we test:
    ✅ Forest building: roots, sibling order, dangling parents, stored cycles
    ✅ Path resolution: "A > B > C", "No folder", termination on bad data
    ✅ Cycle detection for proposed moves
    ✅ Content counting per folder
"""

from uuid import uuid4

from docassist.services.folder_tree import (
    NO_FOLDER,
    FolderRecord,
    FolderSnapshot,
    build_tree,
    count_contents,
    resolve_path,
    tally_contents,
)


def _folder(name, parent=None):
    return FolderRecord(id=uuid4(), name=name, parent_id=parent.id if parent else None)


def _shape(nodes):
    return [(node.record.name, _shape(node.children)) for node in nodes]


class TestBuildTree:
    def test_nests_children_under_parents(self):
        work = _folder("Work")
        epics = _folder("Epics", work)
        stories = _folder("Stories", work)
        personal = _folder("Personal")

        tree = build_tree([stories, personal, epics, work])

        assert _shape(tree) == [
            ("Personal", []),
            ("Work", [("Epics", []), ("Stories", [])]),
        ]

    def test_dangling_parent_becomes_root(self):
        orphan = FolderRecord(id=uuid4(), name="Orphan", parent_id=uuid4())

        tree = build_tree([orphan])

        assert [node.id for node in tree] == [orphan.id]

    def test_self_parent_becomes_root(self):
        folder_id = uuid4()
        looped = FolderRecord(id=folder_id, name="Loop", parent_id=folder_id)

        assert [node.id for node in build_tree([looped])] == [folder_id]

    def test_stored_cycle_keeps_every_folder(self):
        a_id, b_id = uuid4(), uuid4()
        a = FolderRecord(id=a_id, name="A", parent_id=b_id)
        b = FolderRecord(id=b_id, name="B", parent_id=a_id)

        tree = build_tree([a, b])

        seen = []

        def walk(nodes):
            for node in nodes:
                seen.append(node.id)
                walk(node.children)

        walk(tree)
        assert sorted(seen) == sorted([a_id, b_id])

    def test_same_input_gives_same_structure(self):
        root = _folder("Root")
        folders = [root, _folder("B", root), _folder("A", root), _folder("Other")]

        assert _shape(build_tree(folders)) == _shape(build_tree(folders))
        assert _shape(build_tree(folders)) == _shape(build_tree(list(reversed(folders))))

    def test_accepts_orm_like_rows(self):
        class Row:
            def __init__(self, id, name, parent_id):
                self.id, self.name, self.parent_id = id, name, parent_id

        row = Row(uuid4(), "Plain", None)
        assert build_tree([row])[0].record.name == "Plain"


class TestResolvePath:
    def test_full_path_root_first(self):
        a = _folder("A")
        b = _folder("B", a)
        c = _folder("C", b)

        assert resolve_path([a, b, c], c.id) == "A > B > C"

    def test_none_and_unknown_ids(self):
        a = _folder("A")
        assert resolve_path([a], None) == NO_FOLDER
        assert resolve_path([a], uuid4()) == NO_FOLDER

    def test_dangling_parent_stops_at_known_folder(self):
        orphan = FolderRecord(id=uuid4(), name="Orphan", parent_id=uuid4())
        assert resolve_path([orphan], orphan.id) == "Orphan"

    def test_terminates_on_stored_cycle(self):
        a_id, b_id = uuid4(), uuid4()
        folders = [
            FolderRecord(id=a_id, name="A", parent_id=b_id),
            FolderRecord(id=b_id, name="B", parent_id=a_id),
        ]
        path = resolve_path(folders, a_id)
        assert set(path.split(" > ")) == {"A", "B"}

    def test_ancestors_are_root_first(self):
        a = _folder("A")
        b = _folder("B", a)
        snapshot = FolderSnapshot([b, a])

        assert [r.name for r in snapshot.ancestors(b.id)] == ["A", "B"]
        assert snapshot.ancestors(None) == []


class TestCycleDetection:
    def setup_method(self):
        self.root = _folder("Root")
        self.child = _folder("Child", self.root)
        self.grandchild = _folder("Grandchild", self.child)
        self.sibling = _folder("Sibling")
        self.snapshot = FolderSnapshot([self.root, self.child, self.grandchild, self.sibling])

    def test_move_under_itself(self):
        assert self.snapshot.would_create_cycle(self.root.id, self.root.id)

    def test_move_under_descendant(self):
        assert self.snapshot.would_create_cycle(self.root.id, self.grandchild.id)
        assert self.snapshot.would_create_cycle(self.child.id, self.grandchild.id)

    def test_legal_moves(self):
        assert not self.snapshot.would_create_cycle(self.grandchild.id, self.root.id)
        assert not self.snapshot.would_create_cycle(self.root.id, self.sibling.id)
        assert not self.snapshot.would_create_cycle(self.child.id, None)


class TestContentCounts:
    def test_counts_only_direct_items(self):
        folder_id, other_id = uuid4(), uuid4()
        documents = [{"folder_id": folder_id}, {"folder_id": other_id}, {"folder_id": None}]
        notes = [{"folder_id": folder_id}]

        counts = count_contents(folder_id, documents, notes, [])

        assert (counts.document_count, counts.note_count, counts.audio_count) == (1, 1, 0)
        assert counts.total == 2

    def test_tally_skips_unfiled(self):
        folder_id = uuid4()
        tally = tally_contents(
            [{"folder_id": folder_id}, {"folder_id": None}],
            [],
            [{"folder_id": folder_id}],
        )

        assert list(tally) == [folder_id]
        assert tally[folder_id].document_count == 1
        assert tally[folder_id].audio_count == 1
