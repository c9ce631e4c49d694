"""
Notification Route Handlers
===========================

What:  /api/notifications: inbox listing, creation and read state.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.database import get_db_session
from docassist.schemas.common import ErrorResponse, MessageResponse
from docassist.schemas.notification import (
    NotificationCreate,
    NotificationListResponse,
    NotificationReadUpdate,
    NotificationResponse,
)
from docassist.security import OwnerContext, get_owner
from docassist.services.notification_service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications, newest first")
async def list_notifications(
    limit: int = Query(default=20, ge=1, le=200),
    unread_only: bool = Query(default=False),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    return await notification_service.list_notifications(
        db, owner, limit=limit, unread_only=unread_only
    )


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a notification",
)
async def create_notification(
    payload: NotificationCreate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    return await notification_service.create(db, owner, payload)


@router.post("/read-all", response_model=MessageResponse, summary="Mark every notification read")
async def mark_all_read(
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    updated = await notification_service.mark_all_read(db, owner)
    return MessageResponse(message=f"{updated} notifications marked as read")


@router.patch(
    "/{notification_id}",
    response_model=NotificationResponse,
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Mark a notification read or unread",
)
async def set_read(
    notification_id: UUID,
    payload: NotificationReadUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    return await notification_service.set_read(db, owner, notification_id, read=payload.read)
