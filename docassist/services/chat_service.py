"""
Document AI Assistant — Workspace Chat
=======================================

What:  Answers a user message with the owner's workspace as context, and
       carries out the workspace commands the model embeds in its answer.

Context assembly:
    Documents, notes, audio, todos and folders are read concurrently
    (asyncio.gather), each on its own short-lived session. Every item is
    labelled with its folder path from one FolderSnapshot; long bodies are
    truncated to the configured character limits.

Embedded commands (removed from the visible answer):
    **[CREATE_FOLDER: name]**
    **[CREATE_TODO: title|description|priority|YYYY-MM-DD]**

    Each command runs in its own transaction. A failing command is logged
    and skipped; it never fails the chat request. Successfully created
    items are listed in a confirmation block appended to the answer.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from docassist.config import settings
from docassist.exceptions import AssistantError
from docassist.models.todo import PRIORITIES
from docassist.schemas.notification import ChatMessageRequest, ChatReply
from docassist.schemas.todo import date_to_utc_midnight, parse_date_only
from docassist.security import OwnerContext
from docassist.services.content_service import audio_service, document_service, note_service
from docassist.services.folder_service import folder_service
from docassist.services.folder_tree import NO_FOLDER, FolderSnapshot
from docassist.services.llm_base import LLMService
from docassist.services.llm_providers import get_llm_service, provider_for
from docassist.services.todo_service import todo_service

logger = logging.getLogger(__name__)

FOLDER_COMMAND = re.compile(r"\*\*\[CREATE_FOLDER:\s*([^\]]+)\]\*\*")
TODO_COMMAND = re.compile(r"\*\*\[CREATE_TODO:\s*([^|]+)\|([^|]*)\|([^|]*)\|([^\]]*)\]\*\*")

SYSTEM_PROMPT = """You are a SAFe/Agile expert and intelligent document analyst. Perform focused, deep analysis of user content with practical insights.

**CORE CAPABILITIES:**
1. **Smart Document Analysis**: Extract key themes, requirements, risks, and business logic from actual content
2. **Pattern Recognition**: Identify relationships, gaps, and opportunities across all user artifacts
3. **SAFe Expertise**: Apply INVEST criteria, WSJF prioritization, PI planning principles to real content
4. **Organization Intelligence**: Suggest better folder structures and content categorization

**USER'S WORKSPACE:** {documents} docs, {notes} notes, {audios} recordings, {todos} todos, {folders} folders

**WORKSPACE ACTIONS:**
When the user asks you to create folders or todos, include one command per item in your answer:
- **[CREATE_FOLDER: Folder Name]**
- **[CREATE_TODO: title|description|High, Medium or Low|YYYY-MM-DD]** (description and date may be left empty)

**RESPONSE STYLE:**
- Lead with specific insights from their actual documents
- Reference specific content details and cross-reference artifacts
- Provide actionable SAFe/Agile recommendations for their situation
- Be conversational yet analytically precise

**WORKSPACE CONTENT:**
{workspace}"""


# ══════════════════════════════════════════════════════════════════════════
# Pure helpers
# ══════════════════════════════════════════════════════════════════════════


def _truncate(text: Optional[str], limit: int) -> Dict[str, Any]:
    body = text or ""
    return {
        "content": body[:limit],
        "fullLength": len(body),
        "truncated": len(body) > limit,
    }


def build_workspace_context(
    snapshot: FolderSnapshot,
    documents: List[Any],
    notes: List[Any],
    audios: List[Any],
    todos: List[Any],
) -> Dict[str, Any]:
    def path(folder_id) -> str:
        return snapshot.resolve_path(folder_id) if folder_id else NO_FOLDER

    return {
        "folderStructure": [
            {"name": record.name, "path": snapshot.resolve_path(record.id)}
            for record in snapshot.records
        ],
        "documents": [
            {
                "title": doc.title,
                "file_type": doc.file_type,
                "artifact_type": doc.artifact_type,
                "priority": doc.priority,
                "tags": doc.tags,
                "folder": path(doc.folder_id),
                **_truncate(doc.content, settings.chat_document_chars),
            }
            for doc in documents
        ],
        "notes": [
            {
                "title": note.title,
                "meeting_type": note.meeting_type,
                "participants": note.participants,
                "folder": path(note.folder_id),
                **_truncate(note.content, settings.chat_note_chars),
            }
            for note in notes
        ],
        "audios": [
            {
                "title": audio.title,
                "meeting_type": audio.meeting_type,
                "participants": audio.participants,
                "folder": path(audio.folder_id),
                **_truncate(audio.transcription, settings.chat_note_chars),
            }
            for audio in audios
        ],
        "todos": [
            {
                "title": todo.title,
                "description": todo.description,
                "status": todo.status,
                "priority": todo.priority,
                "due_date": todo.due_date.isoformat() if todo.due_date else None,
                "source": todo.source,
                "folder": path(todo.folder_id),
            }
            for todo in todos
        ],
    }


@dataclass
class TodoCommand:
    title: str
    description: Optional[str]
    priority: str
    due_date: Optional[str]


@dataclass
class ChatCommands:
    text: str
    folders: List[str] = field(default_factory=list)
    todos: List[TodoCommand] = field(default_factory=list)


def extract_commands(answer: str) -> ChatCommands:
    """Pulls the embedded commands out of a model answer."""
    folders = [m.group(1).strip() for m in FOLDER_COMMAND.finditer(answer) if m.group(1).strip()]
    todos = []
    for m in TODO_COMMAND.finditer(answer):
        title, description, priority, due = (part.strip() for part in m.groups())
        if not title:
            continue
        due_date = parse_date_only(due)
        todos.append(
            TodoCommand(
                title=title,
                description=description or None,
                priority=priority if priority in PRIORITIES else "Medium",
                due_date=due_date.isoformat() if due_date else None,
            )
        )
    text = TODO_COMMAND.sub("", FOLDER_COMMAND.sub("", answer))
    return ChatCommands(text=text.strip(), folders=folders, todos=todos)


def confirmation_block(created_folders: List[str], created_todos: List[str]) -> str:
    parts = []
    if created_folders:
        parts.append(
            "**Folders Created Successfully:**\n"
            + "\n".join(f"- {name}" for name in created_folders)
        )
    if created_todos:
        parts.append(
            "**Todos Created Successfully:**\n"
            + "\n".join(f"- {title}" for title in created_todos)
        )
    return "\n\n".join(parts)


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class ChatService:
    async def _gather_workspace(
        self, session_factory: async_sessionmaker, owner: OwnerContext
    ) -> Tuple[FolderSnapshot, List[Any], List[Any], List[Any], List[Any]]:
        async def read(loader, **kwargs):
            async with session_factory() as db:
                return await loader(db, owner, **kwargs)

        documents, notes, audios, todos, folders = await asyncio.gather(
            read(document_service.list_rows, limit=settings.chat_document_limit),
            read(note_service.list_rows, limit=settings.chat_note_limit),
            read(audio_service.list_rows, limit=settings.chat_audio_limit),
            read(todo_service.list_todos, limit=settings.chat_todo_limit),
            read(folder_service.list_rows),
        )
        return FolderSnapshot(folders), documents, notes, audios, todos

    async def _run_commands(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        commands: ChatCommands,
    ) -> Tuple[List[str], List[str]]:
        created_folders: List[str] = []
        created_todos: List[str] = []

        for name in commands.folders:
            try:
                async with session_factory() as db:
                    await folder_service.create_row(db, owner, name=name)
                    await db.commit()
                created_folders.append(name)
            except (AssistantError, SQLAlchemyError) as e:
                logger.warning("Chat command CREATE_FOLDER '%s' failed: %s", name, e)

        for command in commands.todos:
            due = parse_date_only(command.due_date)
            try:
                async with session_factory() as db:
                    await todo_service.create_row(
                        db,
                        owner,
                        title=command.title,
                        description=command.description,
                        priority=command.priority,
                        due_date=date_to_utc_midnight(due) if due else None,
                        source="auto_detected",
                        source_type="chat",
                    )
                    await db.commit()
                created_todos.append(command.title)
            except (AssistantError, SQLAlchemyError) as e:
                logger.warning("Chat command CREATE_TODO '%s' failed: %s", command.title, e)

        return created_folders, created_todos

    async def reply(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        request: ChatMessageRequest,
        llm: Optional[LLMService] = None,
    ) -> ChatReply:
        owner.require_same_user(request.user_id)
        provider = llm or (
            get_llm_service(request.provider) if request.provider else provider_for("chat")
        )

        snapshot, documents, notes, audios, todos = await self._gather_workspace(
            session_factory, owner
        )
        context = build_workspace_context(snapshot, documents, notes, audios, todos)
        system = SYSTEM_PROMPT.format(
            documents=len(documents),
            notes=len(notes),
            audios=len(audios),
            todos=len(todos),
            folders=len(snapshot),
            workspace=json.dumps(context, indent=2, default=str),
        )

        answer = await provider.generate(
            request.message, system=system, max_tokens=4000, temperature=0.7
        )
        commands = extract_commands(answer)
        created_folders, created_todos = await self._run_commands(session_factory, owner, commands)

        response = commands.text
        confirmation = confirmation_block(created_folders, created_todos)
        if confirmation:
            response = f"{response}\n\n{confirmation}" if response else confirmation

        logger.info(
            "Chat reply for %s: %d chars, %d folders, %d todos created",
            owner.user_id,
            len(response),
            len(created_folders),
            len(created_todos),
        )
        return ChatReply(
            response=response,
            created_folders=created_folders,
            created_todos=created_todos,
            context={
                "documents": len(documents),
                "notes": len(notes),
                "audios": len(audios),
                "todos": len(todos),
                "folders": len(snapshot),
            },
        )


# ── Singleton Instance ────────────────────────────────────────────────────
chat_service = ChatService()
