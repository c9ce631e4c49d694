"""
Document AI Assistant — Folder Hierarchy Model
===============================================

What:  Pure, in-memory view of one owner's folder forest.
Why:   Tree building, path resolution and cycle checks all walk parent
       pointers. Doing that against a closed snapshot (never a live query)
       guarantees termination even when stored data has a dangling parent or
       a corrupt cycle.
How:   Arena + index. FolderSnapshot keeps one dict of id → FolderRecord and
       one dict of parent id → child ids. Nodes reference each other only by
       id. A snapshot is built once per request and never mutated.

No I/O happens here; FolderService loads the rows and hands them in.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set
from uuid import UUID

PATH_SEPARATOR = " > "
NO_FOLDER = "No folder"


@dataclass(frozen=True)
class FolderRecord:
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    safe_artifact: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "FolderRecord":
        """Accepts anything with id/name/parent_id attributes (ORM rows, schemas)."""
        return cls(
            id=row.id,
            name=row.name,
            parent_id=row.parent_id,
            safe_artifact=getattr(row, "safe_artifact", None),
        )


@dataclass
class FolderNode:
    """One tree position; children are filled from the snapshot index."""

    record: FolderRecord
    children: List["FolderNode"] = field(default_factory=list)

    @property
    def id(self) -> UUID:
        return self.record.id


@dataclass(frozen=True)
class ContentCounts:
    document_count: int = 0
    note_count: int = 0
    audio_count: int = 0

    @property
    def total(self) -> int:
        return self.document_count + self.note_count + self.audio_count


def _sort_key(record: FolderRecord):
    return (record.name, str(record.id))


class FolderSnapshot:
    """
    Immutable arena of one owner's folders.

    Invariants of the built index:
        - every record appears exactly once, either as a root or under the
          parent it names
        - a record whose parent is absent from the arena is a root
        - sibling lists are ordered by (name, id)
    """

    def __init__(self, folders: Iterable):
        records = [
            f if isinstance(f, FolderRecord) else FolderRecord.from_row(f) for f in folders
        ]
        self._by_id: Dict[UUID, FolderRecord] = {r.id: r for r in records}
        self._children: Dict[UUID, List[UUID]] = {}
        self._roots: List[UUID] = []

        for record in sorted(self._by_id.values(), key=_sort_key):
            parent_id = record.parent_id
            if parent_id is None or parent_id not in self._by_id or parent_id == record.id:
                self._roots.append(record.id)
            else:
                self._children.setdefault(parent_id, []).append(record.id)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, folder_id: object) -> bool:
        return folder_id in self._by_id

    def get(self, folder_id: Optional[UUID]) -> Optional[FolderRecord]:
        if folder_id is None:
            return None
        return self._by_id.get(folder_id)

    @property
    def records(self) -> List[FolderRecord]:
        return sorted(self._by_id.values(), key=_sort_key)

    @property
    def root_ids(self) -> List[UUID]:
        return list(self._roots)

    def child_ids(self, folder_id: UUID) -> List[UUID]:
        return list(self._children.get(folder_id, ()))

    # ── Tree ──────────────────────────────────────────────────────────────

    def build_tree(self) -> List[FolderNode]:
        """
        Returns the forest as nested FolderNodes.

        Folders caught in a stored cycle are unreachable from any root and
        are appended as extra roots so none disappears from the result.
        """
        placed: Set[UUID] = set()

        def build(folder_id: UUID) -> FolderNode:
            placed.add(folder_id)
            node = FolderNode(record=self._by_id[folder_id])
            for child_id in self._children.get(folder_id, ()):
                if child_id not in placed:
                    node.children.append(build(child_id))
            return node

        roots = [build(root_id) for root_id in self._roots]
        for record in self.records:
            if record.id not in placed:
                roots.append(build(record.id))
        return roots

    # ── Paths ─────────────────────────────────────────────────────────────

    def ancestors(self, folder_id: Optional[UUID]) -> List[FolderRecord]:
        """Root-first chain ending at folder_id; empty for an unknown id."""
        chain: List[FolderRecord] = []
        visited: Set[UUID] = set()
        current = self.get(folder_id)
        while current is not None and current.id not in visited:
            visited.add(current.id)
            chain.append(current)
            current = self.get(current.parent_id)
        chain.reverse()
        return chain

    def resolve_path(self, folder_id: Optional[UUID]) -> str:
        chain = self.ancestors(folder_id)
        if not chain:
            return NO_FOLDER
        return PATH_SEPARATOR.join(record.name for record in chain)

    # ── Structure checks ──────────────────────────────────────────────────

    def would_create_cycle(self, folder_id: UUID, new_parent_id: Optional[UUID]) -> bool:
        """
        True when making new_parent_id the parent of folder_id closes a loop.

        Walks upward from the proposed parent; meeting folder_id on the way
        (including new_parent_id == folder_id) means the proposed parent is
        the folder itself or one of its descendants.
        """
        if new_parent_id is None:
            return False
        visited: Set[UUID] = set()
        current_id: Optional[UUID] = new_parent_id
        while current_id is not None and current_id not in visited:
            if current_id == folder_id:
                return True
            visited.add(current_id)
            record = self._by_id.get(current_id)
            current_id = record.parent_id if record else None
        return False


def count_contents(
    folder_id: UUID,
    documents: Sequence = (),
    notes: Sequence = (),
    audios: Sequence = (),
) -> ContentCounts:
    """Items directly assigned to folder_id (not counting subfolders)."""

    def _count(items: Sequence) -> int:
        return sum(1 for item in items if _folder_of(item) == folder_id)

    return ContentCounts(
        document_count=_count(documents),
        note_count=_count(notes),
        audio_count=_count(audios),
    )


def tally_contents(
    documents: Sequence = (),
    notes: Sequence = (),
    audios: Sequence = (),
) -> Dict[UUID, ContentCounts]:
    """Counts for every folder in one pass over each collection; unfiled items are skipped."""
    totals: Dict[UUID, List[int]] = {}
    for slot, items in enumerate((documents, notes, audios)):
        for item in items:
            folder_id = _folder_of(item)
            if folder_id is None:
                continue
            totals.setdefault(folder_id, [0, 0, 0])[slot] += 1
    return {folder_id: ContentCounts(*counts) for folder_id, counts in totals.items()}


def _folder_of(item) -> Optional[UUID]:
    if isinstance(item, dict):
        return item.get("folder_id")
    return getattr(item, "folder_id", None)


def build_tree(folders: Iterable) -> List[FolderNode]:
    return FolderSnapshot(folders).build_tree()


def resolve_path(folders: Iterable, folder_id: Optional[UUID]) -> str:
    return FolderSnapshot(folders).resolve_path(folder_id)
