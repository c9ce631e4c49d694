"""
Document AI Assistant — Todo Service
=====================================

What:  Owner-scoped todo CRUD, bulk creation and LLM-based action item
       detection.

Detection contract:
    The detection provider must answer with a JSON array. A non-array
    answer is a MalformedResponseError. Inside the array every candidate is
    checked on its own and invalid ones are dropped silently; the caller
    only sees the valid subset and its count.

        title       string, non-empty after trim, at most 100 characters
        priority    High | Medium | Low, anything else becomes Medium
        due_date    strict YYYY-MM-DD calendar date, anything else becomes null
        description trimmed string or null
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.exceptions import MalformedResponseError, NotFoundError, ValidationError
from docassist.models import Todo
from docassist.models.todo import PRIORITIES, TODO_STATUSES
from docassist.schemas.todo import (
    DetectedTodo,
    TodoBulkRequest,
    TodoBulkResponse,
    TodoCreate,
    TodoDetectRequest,
    TodoDetectResponse,
    TodoResponse,
    TodoUpdate,
    date_to_utc_midnight,
    parse_date_only,
)
from docassist.security import OwnerContext
from docassist.services.base import as_utc, database_errors
from docassist.services.folder_service import folder_service
from docassist.services.llm_base import LLMService, parse_json_response
from docassist.services.llm_providers import provider_for

logger = logging.getLogger(__name__)

MAX_DETECTED_TITLE = 100
DEFAULT_PRIORITY = "Medium"

DETECTION_SYSTEM = (
    "You are an expert at extracting actionable todo items from meeting summaries, "
    "documents, and notes. Always return valid JSON."
)

DETECTION_PROMPT = """Analyze the following text and extract actionable todo items. Focus on:
- Action items mentioned explicitly
- Follow-up tasks
- Deadlines and commitments
- Next steps
- Assigned responsibilities

For each todo item, provide:
- A clear, actionable title (max 100 characters)
- A brief description if context is available
- Priority level (High, Medium, Low) based on urgency/importance indicators
- Due date if mentioned (return as YYYY-MM-DD or null)

Return the result as a JSON array of objects with this structure:
{{
  "title": "string",
  "description": "string",
  "priority": "High|Medium|Low",
  "due_date": "YYYY-MM-DD|null"
}}

Text to analyze:
{content}

Important: Only return valid, actionable todos. Skip general statements or completed actions. Return an empty array if no todos are found."""


# ══════════════════════════════════════════════════════════════════════════
# Candidate filtering (pure)
# ══════════════════════════════════════════════════════════════════════════


def _clean_description(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _clean_priority(value: Any) -> str:
    return value if value in PRIORITIES else DEFAULT_PRIORITY


def _clean_optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def filter_detected_todos(
    candidates: List[Any],
    source_id: Optional[str] = None,
    source_type: Optional[str] = None,
) -> List[DetectedTodo]:
    valid: List[DetectedTodo] = []
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        title = candidate.get("title")
        if not isinstance(title, str) or not title.strip() or len(title) > MAX_DETECTED_TITLE:
            continue

        due = parse_date_only(candidate.get("due_date"))
        valid.append(
            DetectedTodo(
                title=title.strip(),
                description=_clean_description(candidate.get("description")),
                priority=_clean_priority(candidate.get("priority")),
                due_date=due.isoformat() if due else None,
                source="auto_detected",
                source_id=source_id or None,
                source_type=source_type or None,
            )
        )
    return valid


def _parse_bulk_due_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    plain = parse_date_only(value)
    if plain is not None:
        return date_to_utc_midnight(plain)
    try:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def normalize_bulk_item(item: Any) -> Optional[Dict[str, Any]]:
    """Column values for one bulk item, or None when it has no usable title."""
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    return {
        "title": title.strip(),
        "description": _clean_description(item.get("description")),
        "priority": _clean_priority(item.get("priority")),
        "due_date": _parse_bulk_due_date(item.get("due_date")),
        "source": _clean_optional_str(item.get("source")) or "auto_detected",
        "source_id": _clean_optional_str(item.get("source_id")),
        "source_type": _clean_optional_str(item.get("source_type")),
    }


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class TodoService:
    async def list_todos(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[TodoResponse]:
        if status is not None and status not in TODO_STATUSES:
            raise ValidationError(
                message=f"Invalid status '{status}'. Must be one of: {', '.join(TODO_STATUSES)}",
                field="status",
            )
        query = select(Todo).where(Todo.user_id == owner.user_id)
        if status is not None:
            query = query.where(Todo.status == status)
        query = query.order_by(Todo.created_at.desc())
        if limit:
            query = query.limit(limit)

        with database_errors("load todos", owner=str(owner.user_id)):
            result = await db.execute(query)
            rows = result.scalars().all()
        return [TodoResponse.model_validate(row) for row in rows]

    async def get_row(self, db: AsyncSession, owner: OwnerContext, todo_id: UUID) -> Todo:
        with database_errors("load todo", todo_id=str(todo_id)):
            result = await db.execute(
                select(Todo).where(Todo.id == todo_id, Todo.user_id == owner.user_id)
            )
            todo = result.scalar_one_or_none()
        if todo is None:
            raise NotFoundError(resource="todo", resource_id=str(todo_id))
        return todo

    async def get(self, db: AsyncSession, owner: OwnerContext, todo_id: UUID) -> TodoResponse:
        return TodoResponse.model_validate(await self.get_row(db, owner, todo_id))

    async def create_row(self, db: AsyncSession, owner: OwnerContext, **fields: Any) -> Todo:
        await folder_service.require_owned_folder(db, owner, fields.get("folder_id"))
        todo = Todo(user_id=owner.user_id, **fields)
        with database_errors("create todo", owner=str(owner.user_id)):
            db.add(todo)
            await db.flush()
            await db.refresh(todo)
        logger.info("Todo created: %s (source=%s)", todo.id, todo.source)
        return todo

    async def create(self, db: AsyncSession, owner: OwnerContext, data: TodoCreate) -> TodoResponse:
        return TodoResponse.model_validate(await self.create_row(db, owner, **data.model_dump()))

    async def bulk_create(
        self, db: AsyncSession, owner: OwnerContext, data: TodoBulkRequest
    ) -> TodoBulkResponse:
        if not data.todos:
            raise ValidationError(message="Invalid todos array", field="todos")

        rows = [fields for fields in map(normalize_bulk_item, data.todos) if fields]
        if not rows:
            raise ValidationError(message="No valid todos to create", field="todos")

        todos = [Todo(user_id=owner.user_id, **fields) for fields in rows]
        with database_errors("create todos", owner=str(owner.user_id)):
            db.add_all(todos)
            await db.flush()
            for todo in todos:
                await db.refresh(todo)

        logger.info("Bulk created %d todos (%d submitted)", len(todos), len(data.todos))
        created = [TodoResponse.model_validate(todo) for todo in todos]
        return TodoBulkResponse(todos=created, count=len(created))

    async def update(
        self, db: AsyncSession, owner: OwnerContext, todo_id: UUID, data: TodoUpdate
    ) -> TodoResponse:
        """
        Partial update. Status changes never touch deadline_notification_sent,
        so a re-opened todo is not reminded about again.
        """
        todo = await self.get_row(db, owner, todo_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("title", "status", "priority"):
            if required in changes and changes[required] is None:
                raise ValidationError(message=f"{required} cannot be null", field=required)
        if "folder_id" in changes:
            await folder_service.require_owned_folder(db, owner, changes["folder_id"])

        for attr, value in changes.items():
            setattr(todo, attr, value)
        with database_errors("update todo", todo_id=str(todo_id)):
            await db.flush()
            await db.refresh(todo)
        return TodoResponse.model_validate(todo)

    async def delete(self, db: AsyncSession, owner: OwnerContext, todo_id: UUID) -> None:
        todo = await self.get_row(db, owner, todo_id)
        with database_errors("delete todo", todo_id=str(todo_id)):
            await db.delete(todo)
            await db.flush()
        logger.info("Todo deleted: %s", todo_id)

    async def detect(
        self,
        owner: OwnerContext,
        data: TodoDetectRequest,
        llm: Optional[LLMService] = None,
    ) -> TodoDetectResponse:
        """Extracts candidate todos from free text; nothing is persisted."""
        provider = llm or provider_for("detection")
        answer = await provider.generate(
            DETECTION_PROMPT.format(content=data.content),
            system=DETECTION_SYSTEM,
            max_tokens=1000,
            temperature=0.3,
            json_output=True,
        )

        candidates = parse_json_response(answer, provider=provider.name)
        if not isinstance(candidates, list):
            raise MalformedResponseError(
                context={"provider": provider.name, "expected": "array", "got": type(candidates).__name__},
            )

        todos = filter_detected_todos(candidates, data.source_id, data.source_type)
        logger.info(
            "Todo detection for %s: %d of %d candidates kept",
            owner.user_id,
            len(todos),
            len(candidates),
        )
        return TodoDetectResponse(todos=todos, count=len(todos))


# ── Singleton Instance ────────────────────────────────────────────────────
todo_service = TodoService()
