"""
Todo Route Handlers
===================

What:  /api/todos: CRUD, bulk creation of reviewed detections, LLM action
       item detection and the deadline reminder sweep.

Static paths (/bulk, /detect, /check-deadlines) are declared before
/{todo_id} so they are not captured as ids.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docassist.database import get_db_session, get_session_factory
from docassist.schemas.common import ErrorResponse
from docassist.schemas.notification import DeadlineSweepResponse
from docassist.schemas.todo import (
    TodoBulkRequest,
    TodoBulkResponse,
    TodoCreate,
    TodoDetectRequest,
    TodoDetectResponse,
    TodoResponse,
    TodoUpdate,
)
from docassist.security import OwnerContext, get_owner
from docassist.services.deadline_service import deadline_service
from docassist.services.todo_service import todo_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/todos", tags=["Todos"])

NOT_FOUND = {404: {"description": "Todo or folder not found", "model": ErrorResponse}}


@router.get("", response_model=List[TodoResponse], summary="List todos, newest first")
async def list_todos(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[TodoResponse]:
    return await todo_service.list_todos(db, owner, status=status_filter)


@router.post(
    "",
    response_model=TodoResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Create a todo",
)
async def create_todo(
    payload: TodoCreate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoResponse:
    """A date-only due date ("2025-03-01") is stored as midnight UTC."""
    return await todo_service.create(db, owner, payload)


@router.post(
    "/bulk",
    response_model=TodoBulkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "No valid todos submitted", "model": ErrorResponse}},
    summary="Create several todos at once",
)
async def bulk_create_todos(
    payload: TodoBulkRequest,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoBulkResponse:
    """
    Items without a usable title are skipped; unrecognised priorities fall
    back to Medium and unparseable due dates are dropped.
    """
    return await todo_service.bulk_create(db, owner, payload)


@router.post(
    "/detect",
    response_model=TodoDetectResponse,
    responses={500: {"description": "AI service failure or malformed AI output", "model": ErrorResponse}},
    summary="Detect action items in text (nothing is saved)",
)
async def detect_todos(
    payload: TodoDetectRequest,
    owner: OwnerContext = Depends(get_owner),
) -> TodoDetectResponse:
    return await todo_service.detect(owner, payload)


@router.post(
    "/check-deadlines",
    response_model=DeadlineSweepResponse,
    summary="Create reminders for open todos that are due soon",
)
async def check_deadlines(
    owner: OwnerContext = Depends(get_owner),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> DeadlineSweepResponse:
    """
    Each open todo due within the notice window (or already overdue) gets
    exactly one "todo_deadline" notification across all sweeps.
    """
    return await deadline_service.sweep(session_factory, owner)


@router.get("/{todo_id}", response_model=TodoResponse, responses=NOT_FOUND)
async def get_todo(
    todo_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoResponse:
    return await todo_service.get(db, owner, todo_id)


@router.patch("/{todo_id}", response_model=TodoResponse, responses=NOT_FOUND)
async def update_todo(
    todo_id: UUID,
    payload: TodoUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoResponse:
    return await todo_service.update(db, owner, todo_id, payload)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_todo(
    todo_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await todo_service.delete(db, owner, todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
