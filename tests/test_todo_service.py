"""
Document AI Assistant — Todo Service Tests
===========================================

What we test:
    ✅ Detection filtering: blank/long titles dropped, priority and date cleaned
    ✅ detect() with a mocked provider, including malformed output
    ✅ Bulk creation normalisation and its two validation errors
    ✅ CRUD: plain-date due dates, status filter, flag untouched by updates
"""

import json

import pydantic
import pytest

from docassist.exceptions import MalformedResponseError, NotFoundError, ValidationError
from docassist.schemas.todo import TodoBulkRequest, TodoCreate, TodoDetectRequest, TodoUpdate
from docassist.services.base import as_utc
from docassist.services.todo_service import (
    filter_detected_todos,
    normalize_bulk_item,
    todo_service,
)


class TestFilterDetectedTodos:
    def test_only_valid_candidate_survives(self):
        candidates = [
            {"title": "", "priority": "High"},
            {"title": "A" * 150, "priority": "Low"},
            {"title": "Valid task", "priority": "Urgent", "due_date": "2024-13-45"},
        ]

        todos = filter_detected_todos(candidates)

        assert len(todos) == 1
        assert todos[0].title == "Valid task"
        assert todos[0].priority == "Medium"
        assert todos[0].due_date is None
        assert todos[0].source == "auto_detected"

    def test_keeps_valid_fields_and_source(self):
        todos = filter_detected_todos(
            [
                {
                    "title": "Book the PI planning room",
                    "description": "  Ten people  ",
                    "priority": "High",
                    "due_date": "2024-02-29",
                },
                "not an object",
                {"title": 42},
            ],
            source_id="doc-1",
            source_type="document",
        )

        assert len(todos) == 1
        todo = todos[0]
        assert todo.description == "Ten people"
        assert todo.priority == "High"
        assert todo.due_date == "2024-02-29"
        assert (todo.source_id, todo.source_type) == ("doc-1", "document")

    def test_title_of_exactly_100_chars_is_kept(self):
        assert len(filter_detected_todos([{"title": "x" * 100}])) == 1


class TestDetect:
    async def test_returns_filtered_candidates(self, owner, fake_llm):
        fake_llm.generate.return_value = json.dumps(
            [{"title": "Send minutes", "priority": "Low", "due_date": None}, {"title": ""}]
        )

        result = await todo_service.detect(
            owner, TodoDetectRequest(content="Alice will send minutes."), llm=fake_llm
        )

        assert result.count == 1
        assert result.todos[0].title == "Send minutes"
        kwargs = fake_llm.generate.call_args.kwargs
        assert kwargs["json_output"] is True
        assert "Alice will send minutes." in fake_llm.generate.call_args.args[0]

    async def test_fenced_json_is_accepted(self, owner, fake_llm):
        fake_llm.generate.return_value = '```json\n[{"title": "Fix build"}]\n```'

        result = await todo_service.detect(owner, TodoDetectRequest(content="x"), llm=fake_llm)

        assert [t.title for t in result.todos] == ["Fix build"]

    async def test_non_json_is_malformed(self, owner, fake_llm):
        fake_llm.generate.return_value = "Here are your todos: none"

        with pytest.raises(MalformedResponseError):
            await todo_service.detect(owner, TodoDetectRequest(content="x"), llm=fake_llm)

    async def test_object_instead_of_array_is_malformed(self, owner, fake_llm):
        fake_llm.generate.return_value = '{"title": "Fix build"}'

        with pytest.raises(MalformedResponseError):
            await todo_service.detect(owner, TodoDetectRequest(content="x"), llm=fake_llm)


class TestBulkCreate:
    def test_normalize_defaults(self):
        fields = normalize_bulk_item(
            {"title": " Plan ", "priority": "Critical", "due_date": "not a date"}
        )

        assert fields["title"] == "Plan"
        assert fields["priority"] == "Medium"
        assert fields["due_date"] is None
        assert fields["source"] == "auto_detected"

    def test_normalize_rejects_untitled(self):
        assert normalize_bulk_item({"title": "   "}) is None
        assert normalize_bulk_item("Plan") is None

    async def test_creates_valid_items(self, session, owner):
        result = await todo_service.bulk_create(
            session,
            owner,
            TodoBulkRequest(
                todos=[
                    {"title": "One", "due_date": "2024-03-01"},
                    {"title": ""},
                    {"title": "Two", "priority": "High", "source_type": "note"},
                ]
            ),
        )

        assert result.count == 2
        assert result.message == "Todos created successfully"
        first = next(t for t in result.todos if t.title == "One")
        assert as_utc(first.due_date).isoformat() == "2024-03-01T00:00:00+00:00"

    async def test_empty_array_rejected(self, session, owner):
        with pytest.raises(ValidationError, match="Invalid todos array"):
            await todo_service.bulk_create(session, owner, TodoBulkRequest(todos=[]))

    async def test_nothing_valid_rejected(self, session, owner):
        with pytest.raises(ValidationError, match="No valid todos to create"):
            await todo_service.bulk_create(
                session, owner, TodoBulkRequest(todos=[{"title": ""}, {"priority": "High"}])
            )


class TestCrud:
    async def test_plain_date_becomes_utc_midnight(self, session, owner):
        todo = await todo_service.create(
            session, owner, TodoCreate(title="Demo", due_date="2024-05-10")
        )

        assert as_utc(todo.due_date).isoformat() == "2024-05-10T00:00:00+00:00"
        assert todo.source == "manual"
        assert todo.deadline_notification_sent is False

    def test_impossible_calendar_date_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            TodoCreate(title="Demo", due_date="2024-02-30")

    async def test_list_filters_by_status(self, session, owner):
        await todo_service.create(session, owner, TodoCreate(title="Open"))
        await todo_service.create(session, owner, TodoCreate(title="Closed", status="completed"))

        open_todos = await todo_service.list_todos(session, owner, status="pending")

        assert [t.title for t in open_todos] == ["Open"]

    async def test_unknown_status_filter_rejected(self, session, owner):
        with pytest.raises(ValidationError):
            await todo_service.list_todos(session, owner, status="blocked")

    async def test_reopening_keeps_notification_flag(self, session, owner):
        created = await todo_service.create(session, owner, TodoCreate(title="Reminded"))
        row = await todo_service.get_row(session, owner, created.id)
        row.deadline_notification_sent = True
        await session.flush()

        await todo_service.update(session, owner, created.id, TodoUpdate(status="completed"))
        reopened = await todo_service.update(
            session, owner, created.id, TodoUpdate(status="pending")
        )

        assert reopened.status == "pending"
        assert reopened.deadline_notification_sent is True

    async def test_null_status_rejected(self, session, owner):
        created = await todo_service.create(session, owner, TodoCreate(title="Task"))

        with pytest.raises(ValidationError):
            await todo_service.update(session, owner, created.id, TodoUpdate(status=None))

    async def test_other_owner_cannot_delete(self, session, owner, other_owner):
        created = await todo_service.create(session, owner, TodoCreate(title="Mine"))

        with pytest.raises(NotFoundError):
            await todo_service.delete(session, other_owner, created.id)

        await todo_service.delete(session, owner, created.id)
        with pytest.raises(NotFoundError):
            await todo_service.get(session, owner, created.id)
