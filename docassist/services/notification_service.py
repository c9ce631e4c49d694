"""
Document AI Assistant — Notification & Chat History Services
=============================================================

Notifications are append-only apart from read-state toggles; nothing here
deletes them. Chat history rows hold a whole conversation and are replaced
wholesale on each save.
"""

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.exceptions import NotFoundError
from docassist.models import Chat, Notification
from docassist.schemas.notification import (
    ChatResponse,
    ChatSave,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)
from docassist.security import OwnerContext
from docassist.services.base import database_errors

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 50


class NotificationService:
    async def list_notifications(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        limit: int = 20,
        unread_only: bool = False,
    ) -> NotificationListResponse:
        query = select(Notification).where(Notification.user_id == owner.user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)

        with database_errors("load notifications", owner=str(owner.user_id)):
            result = await db.execute(query)
            rows = result.scalars().all()
            unread = await db.execute(
                select(func.count())
                .select_from(Notification)
                .where(Notification.user_id == owner.user_id, Notification.read.is_(False))
            )
        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(row) for row in rows],
            unread_count=unread.scalar_one(),
        )

    async def create(
        self, db: AsyncSession, owner: OwnerContext, data: NotificationCreate
    ) -> NotificationResponse:
        notification = Notification(user_id=owner.user_id, **data.model_dump())
        with database_errors("create notification", owner=str(owner.user_id)):
            db.add(notification)
            await db.flush()
            await db.refresh(notification)
        return NotificationResponse.model_validate(notification)

    async def set_read(
        self, db: AsyncSession, owner: OwnerContext, notification_id: UUID, read: bool = True
    ) -> NotificationResponse:
        """Marks read (stamping read_at) or unread (clearing it)."""
        with database_errors("load notification", notification_id=str(notification_id)):
            result = await db.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.user_id == owner.user_id,
                )
            )
            notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))

        notification.read = read
        notification.read_at = datetime.now(timezone.utc) if read else None
        with database_errors("update notification", notification_id=str(notification_id)):
            await db.flush()
            await db.refresh(notification)
        return NotificationResponse.model_validate(notification)

    async def mark_all_read(self, db: AsyncSession, owner: OwnerContext) -> int:
        with database_errors("update notifications", owner=str(owner.user_id)):
            result = await db.execute(
                update(Notification)
                .where(Notification.user_id == owner.user_id, Notification.read.is_(False))
                .values(read=True, read_at=datetime.now(timezone.utc))
            )
        return result.rowcount or 0


class ChatHistoryService:
    async def list_chats(self, db: AsyncSession, owner: OwnerContext) -> List[ChatResponse]:
        with database_errors("load chats", owner=str(owner.user_id)):
            result = await db.execute(
                select(Chat)
                .where(Chat.user_id == owner.user_id)
                .order_by(Chat.updated_at.desc())
                .limit(CHAT_HISTORY_LIMIT)
            )
            rows = result.scalars().all()
        return [ChatResponse.model_validate(row) for row in rows]

    async def _get_owned(self, db: AsyncSession, owner: OwnerContext, chat_id: UUID) -> Chat:
        with database_errors("load chat", chat_id=str(chat_id)):
            result = await db.execute(
                select(Chat).where(Chat.id == chat_id, Chat.user_id == owner.user_id)
            )
            chat = result.scalar_one_or_none()
        if chat is None:
            raise NotFoundError(resource="chat", resource_id=str(chat_id))
        return chat

    async def save(self, db: AsyncSession, owner: OwnerContext, data: ChatSave) -> ChatResponse:
        if data.chat_id is None:
            chat = Chat(user_id=owner.user_id, messages=data.messages, context=data.context)
            db.add(chat)
        else:
            chat = await self._get_owned(db, owner, data.chat_id)
            chat.messages = data.messages
            if data.context:
                chat.context = data.context

        with database_errors("save chat", owner=str(owner.user_id)):
            await db.flush()
            await db.refresh(chat)
        return ChatResponse.model_validate(chat)

    async def delete(self, db: AsyncSession, owner: OwnerContext, chat_id: UUID) -> None:
        chat = await self._get_owned(db, owner, chat_id)
        with database_errors("delete chat", chat_id=str(chat_id)):
            await db.delete(chat)
            await db.flush()


# ── Singleton Instances ───────────────────────────────────────────────────
notification_service = NotificationService()
chat_history_service = ChatHistoryService()
