"""
Document AI Assistant — Deadline Sweep Tests
=============================================

What we test:
    ✅ Remaining-time text tiers (overdue, hours, days)
    ✅ Notice window boundaries
    ✅ Sweep creates one reminder per eligible todo, and only once
    ✅ Closed, undated and far-future todos are skipped
    ✅ A failure on one todo does not stop the others
"""

from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from docassist.models import Notification, Todo
from docassist.services.deadline_service import (
    DeadlineService,
    describe_time_until_due,
    is_within_notice,
)

NOW = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


def _at(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestDescribeTimeUntilDue:
    def test_hours(self):
        assert describe_time_until_due(_at(2024, 1, 1, 10), NOW) == "is due in 10 hours"

    def test_single_hour(self):
        assert describe_time_until_due(_at(2024, 1, 1, 0, 30), NOW) == "is due in 1 hour"

    def test_overdue(self):
        assert describe_time_until_due(_at(2023, 12, 31), NOW) == "is overdue"
        assert describe_time_until_due(NOW, NOW) == "is overdue"

    def test_days_round_up(self):
        assert describe_time_until_due(_at(2024, 1, 3), NOW) == "is due in 2 days"
        assert describe_time_until_due(_at(2024, 1, 2, 1), NOW) == "is due in 2 days"
        assert describe_time_until_due(_at(2024, 1, 2), NOW) == "is due in 1 day"

    def test_naive_datetimes_are_utc(self):
        assert describe_time_until_due(datetime(2024, 1, 1, 10), NOW) == "is due in 10 hours"


class TestNoticeWindow:
    def test_inside_and_outside(self):
        assert is_within_notice(_at(2024, 1, 1, 23), NOW, 24)
        assert is_within_notice(_at(2024, 1, 2), NOW, 24)
        assert not is_within_notice(_at(2024, 1, 2, 1), NOW, 24)

    def test_overdue_always_inside(self):
        assert is_within_notice(_at(2023, 12, 1), NOW, 0)


async def _add_todo(session_factory, owner, **fields):
    async with session_factory() as db:
        todo = Todo(user_id=owner.user_id, **fields)
        db.add(todo)
        await db.commit()
        return todo.id


async def _notifications(session_factory, owner):
    async with session_factory() as db:
        result = await db.execute(
            select(Notification).where(Notification.user_id == owner.user_id)
        )
        return list(result.scalars().all())


class TestSweep:
    async def test_creates_reminder_and_sets_flag(self, session_factory, owner):
        todo_id = await _add_todo(
            session_factory, owner, title="Write report", priority="High", due_date=_at(2024, 1, 1, 10)
        )

        result = await DeadlineService().sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert result.count == 1
        notification = result.notifications[0]
        assert notification.type == "todo_deadline"
        assert notification.title == "Todo Deadline Reminder"
        assert notification.message == 'Your todo "Write report" is due in 10 hours'
        assert notification.data["todo_id"] == str(todo_id)
        assert notification.data["priority"] == "High"

        async with session_factory() as db:
            todo = await db.get(Todo, todo_id)
            assert todo.deadline_notification_sent is True

    async def test_second_sweep_creates_nothing(self, session_factory, owner):
        await _add_todo(session_factory, owner, title="Once", due_date=_at(2024, 1, 1, 5))
        service = DeadlineService()

        first = await service.sweep(session_factory, owner, now=NOW, advance_hours=24)
        second = await service.sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert first.count == 1
        assert second.count == 0
        assert len(await _notifications(session_factory, owner)) == 1

    async def test_skips_ineligible_todos(self, session_factory, owner, other_owner):
        await _add_todo(session_factory, owner, title="Done", status="completed", due_date=_at(2024, 1, 1, 1))
        await _add_todo(session_factory, owner, title="Undated")
        await _add_todo(session_factory, owner, title="Far away", due_date=_at(2024, 2, 1))
        await _add_todo(
            session_factory,
            owner,
            title="Already told",
            due_date=_at(2024, 1, 1, 1),
            deadline_notification_sent=True,
        )
        await _add_todo(session_factory, other_owner, title="Not mine", due_date=_at(2024, 1, 1, 1))

        result = await DeadlineService().sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert result.count == 0
        assert result.message == "Deadline check completed"

    async def test_in_progress_and_overdue_are_included(self, session_factory, owner):
        await _add_todo(
            session_factory, owner, title="Late", status="in_progress", due_date=_at(2023, 12, 30)
        )

        result = await DeadlineService().sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert result.notifications[0].message == 'Your todo "Late" is overdue'

    async def test_one_failure_does_not_stop_the_rest(self, session_factory, owner):
        await _add_todo(session_factory, owner, title="A", due_date=_at(2024, 1, 1, 2))
        await _add_todo(session_factory, owner, title="B", due_date=_at(2024, 1, 1, 3))

        service = DeadlineService()
        original = service._notify
        calls = []

        async def flaky(session_factory, owner, todo, now):
            calls.append(todo.title)
            if len(calls) == 1:
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return await original(session_factory, owner, todo, now)

        with patch.object(service, "_notify", side_effect=flaky):
            result = await service.sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert len(calls) == 2
        assert result.count == 1

    async def test_non_database_failure_does_not_stop_the_rest(self, session_factory, owner):
        await _add_todo(session_factory, owner, title="A", due_date=_at(2024, 1, 1, 2))
        await _add_todo(session_factory, owner, title="B", due_date=_at(2024, 1, 1, 3))

        service = DeadlineService()
        original = service._notify

        async def broken_first(session_factory, owner, todo, now):
            if todo.title == "A":
                raise ValueError("notification payload rejected")
            return await original(session_factory, owner, todo, now)

        with patch.object(service, "_notify", side_effect=broken_first):
            result = await service.sweep(session_factory, owner, now=NOW, advance_hours=24)

        assert result.count == 1
        assert 'Your todo "B"' in result.notifications[0].message
