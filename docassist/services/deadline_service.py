"""
Document AI Assistant — Deadline Notification Sweep
====================================================

What:  Creates one reminder notification per open todo whose deadline has
       entered the advance-notice window.
When:  Triggered externally (POST /api/todos/check-deadlines, typically
       polled by the client). Nothing here schedules itself.

Per-todo unit of work:
    Each eligible todo gets its own session and transaction:
        1. flip deadline_notification_sent false → true (guarded UPDATE)
        2. insert the Notification row
        3. commit
    A failure rolls back that todo only; it is logged and the sweep moves
    on. Running the sweep twice creates at most one notification per todo,
    because step 1 matches no row the second time.

Remaining-time text (hours rounded up):
    hours <= 0   → "is overdue"
    hours < 24   → "is due in N hour(s)"
    otherwise    → "is due in N day(s)", days = ceil(hours / 24)
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from docassist.config import settings
from docassist.models import Notification, Todo
from docassist.models.todo import OPEN_STATUSES
from docassist.schemas.notification import DeadlineSweepResponse, NotificationResponse
from docassist.security import OwnerContext
from docassist.services.base import as_utc, database_errors

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "todo_deadline"
NOTIFICATION_TITLE = "Todo Deadline Reminder"


class _DueTodo(NamedTuple):
    id: UUID
    title: str
    priority: str
    due_date: datetime


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def describe_time_until_due(due_date: datetime, now: datetime) -> str:
    hours = math.ceil((as_utc(due_date) - as_utc(now)).total_seconds() / 3600)
    if hours <= 0:
        return "is overdue"
    if hours < 24:
        return f"is due in {_plural(hours, 'hour')}"
    return f"is due in {_plural(math.ceil(hours / 24), 'day')}"


def is_within_notice(due_date: datetime, now: datetime, advance_hours: int) -> bool:
    return as_utc(now) >= as_utc(due_date) - timedelta(hours=advance_hours)


class DeadlineService:
    async def _eligible(self, session_factory: async_sessionmaker, owner: OwnerContext) -> List[_DueTodo]:
        async with session_factory() as db:
            with database_errors("load todos for deadline check", owner=str(owner.user_id)):
                result = await db.execute(
                    select(Todo.id, Todo.title, Todo.priority, Todo.due_date).where(
                        Todo.user_id == owner.user_id,
                        Todo.status.in_(OPEN_STATUSES),
                        Todo.due_date.is_not(None),
                        Todo.deadline_notification_sent.is_(False),
                    )
                )
                return [_DueTodo(*row) for row in result.all()]

    async def _notify(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        todo: _DueTodo,
        now: datetime,
    ) -> Optional[NotificationResponse]:
        due = as_utc(todo.due_date)
        async with session_factory() as db:
            claimed = await db.execute(
                update(Todo)
                .where(
                    Todo.id == todo.id,
                    Todo.user_id == owner.user_id,
                    Todo.deadline_notification_sent.is_(False),
                )
                .values(deadline_notification_sent=True)
            )
            if claimed.rowcount == 0:
                # Another sweep got there first
                await db.rollback()
                return None

            notification = Notification(
                user_id=owner.user_id,
                type=NOTIFICATION_TYPE,
                title=NOTIFICATION_TITLE,
                message=f'Your todo "{todo.title}" {describe_time_until_due(due, now)}',
                data={
                    "todo_id": str(todo.id),
                    "due_date": due.isoformat(),
                    "priority": todo.priority,
                },
            )
            db.add(notification)
            await db.flush()
            await db.refresh(notification)
            response = NotificationResponse.model_validate(notification)
            await db.commit()
            return response

    async def sweep(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        now: Optional[datetime] = None,
        advance_hours: Optional[int] = None,
    ) -> DeadlineSweepResponse:
        now = as_utc(now) if now else datetime.now(timezone.utc)
        window = settings.deadline_advance_hours if advance_hours is None else advance_hours

        created: List[NotificationResponse] = []
        for todo in await self._eligible(session_factory, owner):
            if not is_within_notice(todo.due_date, now, window):
                continue
            try:
                notification = await self._notify(session_factory, owner, todo, now)
            except Exception as e:
                logger.error("Deadline notification for todo %s failed: %s", todo.id, e, exc_info=True)
                continue
            if notification is not None:
                created.append(notification)

        logger.info("Deadline check for %s: %d notifications created", owner.user_id, len(created))
        return DeadlineSweepResponse(
            message="Deadline check completed",
            notifications=created,
            count=len(created),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
deadline_service = DeadlineService()
