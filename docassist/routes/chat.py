"""
Chat Route Handlers
===================

What:  POST /api/chat answers a message with the workspace as context;
       /api/chats stores and lists conversation history.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docassist.database import get_db_session, get_session_factory
from docassist.schemas.common import ErrorResponse
from docassist.schemas.notification import ChatMessageRequest, ChatReply, ChatResponse, ChatSave
from docassist.security import OwnerContext, get_owner
from docassist.services.chat_service import chat_service
from docassist.services.notification_service import chat_history_service

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatReply,
    responses={
        400: {"description": "Invalid message or unknown provider", "model": ErrorResponse},
        401: {"description": "userId does not match the token", "model": ErrorResponse},
        500: {"description": "AI service failure", "model": ErrorResponse},
    },
    summary="Ask the workspace assistant",
)
async def chat(
    payload: ChatMessageRequest,
    owner: OwnerContext = Depends(get_owner),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ChatReply:
    """
    The answer may create folders and todos through embedded commands; the
    names of everything created are returned next to the answer text.
    """
    return await chat_service.reply(session_factory, owner, payload)


@router.get("/chats", response_model=List[ChatResponse], summary="Recent conversations")
async def list_chats(
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[ChatResponse]:
    return await chat_history_service.list_chats(db, owner)


@router.post(
    "/chats",
    response_model=ChatResponse,
    responses={404: {"description": "Chat not found", "model": ErrorResponse}},
    summary="Save a conversation (new, or replace an existing one's messages)",
)
async def save_chat(
    payload: ChatSave,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ChatResponse:
    return await chat_history_service.save(db, owner, payload)


@router.delete(
    "/chats/{chat_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Chat not found", "model": ErrorResponse}},
)
async def delete_chat(
    chat_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await chat_history_service.delete(db, owner, chat_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
