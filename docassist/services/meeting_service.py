"""
Document AI Assistant — Meeting Pipeline
=========================================

What:  Turns a stored meeting recording into a transcript document and a
       SAFe meeting summary document.

Pipeline (POST /api/audio/{id}/transcribe):
    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────────┐
    │ Transcribe │──▶│ Save on the  │──▶│  Transcript  │──▶│   Summary    │
    │  (Gemini)  │   │ audio record │   │   document   │   │   document   │
    └────────────┘   └──────────────┘   └──────────────┘   └──────────────┘

    Each arrow is its own committed transaction. A failing step surfaces its
    error while the rows of earlier steps stay in place, so a summary failure
    leaves the transcription and transcript document available and
    POST /api/audio/{id}/summary can be retried on its own.

    Provider calls happen with no session open.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docassist.exceptions import MalformedResponseError, ValidationError
from docassist.models import Audio, Document
from docassist.schemas.content import AudioResponse, DocumentResponse, MeetingPipelineResponse
from docassist.security import OwnerContext
from docassist.services.content_service import audio_service, document_service
from docassist.services.file_service import file_service
from docassist.services.folder_service import folder_service
from docassist.services.gemini_service import GeminiService, gemini_service
from docassist.services.llm_base import LLMService
from docassist.services.llm_providers import provider_for

logger = logging.getLogger(__name__)

TRANSCRIPTS_FOLDER = "Transcribed Meetings"
SUMMARIES_FOLDER = "Meeting Summaries"

SUMMARY_PROMPT = """You are an expert Agile coach and meeting facilitator. Please analyze the following meeting transcript and create a comprehensive SAFe Agile meeting summary document with the following structure:

## Meeting Summary: {title}

### Key Decisions Made
- List all concrete decisions that were made during the meeting

### Action Items
- List all action items with clear ownership and deadlines where mentioned
- Format: [Action] - Owner: [Name] - Due: [Date/Timeline]

### Discussion Points
- Summarize the main topics discussed
- Include any concerns or blockers identified

### Next Steps
- Outline what needs to happen next
- Include any follow-up meetings or deliverables

### Participants & Contributions
- Note key participants and their main contributions (if identifiable from transcript)

### SAFe Agile Context
- Identify which SAFe events, artifacts, or roles were discussed
- Note any Epic, Feature, User Story, or Capability mentions
- Highlight any PI Planning, Sprint Planning, or other ceremony references

Please keep the summary concise but comprehensive, focusing on actionable items and decisions rather than conversational details.

Transcript:
{transcription}"""


@dataclass
class _AudioSource:
    id: UUID
    title: str
    path: Optional[Path]
    transcription: Optional[str]


class MeetingService:
    def __init__(self, transcriber: Optional[GeminiService] = None):
        self.transcriber = transcriber or gemini_service

    async def _load_audio(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        audio_id: UUID,
        need_file: bool,
    ) -> _AudioSource:
        async with session_factory() as db:
            audio = await audio_service.get_row(db, owner, audio_id)
            path = None
            if need_file:
                path = file_service.resolve(owner, file_service.key_from_url(audio.file_url))
            return _AudioSource(audio.id, audio.title, path, audio.transcription)

    async def _save_transcription(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        audio_id: UUID,
        transcription: str,
    ) -> AudioResponse:
        async with session_factory() as db:
            audio: Audio = await audio_service.update_row(
                db, owner, audio_id, transcription=transcription
            )
            response = audio_service.to_response(audio)
            await db.commit()
        return response

    async def _file_document(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        folder_name: str,
        **fields,
    ) -> DocumentResponse:
        async with session_factory() as db:
            folder = await folder_service.get_or_create(db, owner, folder_name)
            document: Document = await document_service.create_row(
                db, owner, folder_id=folder.id, file_url="", **fields
            )
            response = document_service.to_response(document)
            await db.commit()
        return response

    async def _summarize(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        title: str,
        transcription: str,
        llm: Optional[LLMService],
    ) -> DocumentResponse:
        provider = llm or provider_for("summary")
        summary = await provider.generate(
            SUMMARY_PROMPT.format(title=title, transcription=transcription),
            max_tokens=2000,
            temperature=0.3,
        )
        if not summary.strip():
            raise MalformedResponseError(
                message="No summary was generated. Please try again.",
                context={"provider": provider.name},
            )

        document = await self._file_document(
            session_factory,
            owner,
            SUMMARIES_FOLDER,
            title=f"{title} - Meeting Summary",
            content=summary,
            file_type="md",
            file_size=len(summary),
            tags=["summary", "meeting", "agile", "actionable"],
            artifact_type="Meeting Summary",
            priority="High",
        )
        logger.info("Meeting summary document %s created", document.id)
        return document

    async def transcribe(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        audio_id: UUID,
        llm: Optional[LLMService] = None,
    ) -> MeetingPipelineResponse:
        source = await self._load_audio(session_factory, owner, audio_id, need_file=True)

        transcription = (
            await self.transcriber.transcribe_audio(
                str(source.path), mime_type=file_service.audio_mime_type(source.path)
            )
        ).strip()
        if not transcription:
            raise MalformedResponseError(
                message="The recording produced an empty transcript.",
                context={"audio_id": str(audio_id)},
            )

        audio = await self._save_transcription(session_factory, owner, audio_id, transcription)
        logger.info("Audio %s transcribed (%d chars)", audio_id, len(transcription))

        transcript = await self._file_document(
            session_factory,
            owner,
            TRANSCRIPTS_FOLDER,
            title=f"{source.title} - Transcript",
            content=transcription,
            file_type="txt",
            file_size=len(transcription),
            tags=["transcript", "meeting"],
            artifact_type="Meeting Transcript",
        )

        summary = await self._summarize(session_factory, owner, source.title, transcription, llm)
        return MeetingPipelineResponse(
            audio=audio, transcript_document=transcript, summary_document=summary
        )

    async def summarize(
        self,
        session_factory: async_sessionmaker,
        owner: OwnerContext,
        audio_id: UUID,
        llm: Optional[LLMService] = None,
    ) -> MeetingPipelineResponse:
        """Regenerates only the summary document from the saved transcription."""
        source = await self._load_audio(session_factory, owner, audio_id, need_file=False)
        if not (source.transcription or "").strip():
            raise ValidationError(
                message="This recording has not been transcribed yet",
                field="audio_id",
            )

        summary = await self._summarize(
            session_factory, owner, source.title, source.transcription, llm
        )
        async with session_factory() as db:
            audio = audio_service.to_response(await audio_service.get_row(db, owner, audio_id))
        return MeetingPipelineResponse(audio=audio, summary_document=summary)


# ── Singleton Instance ────────────────────────────────────────────────────
meeting_service = MeetingService()
