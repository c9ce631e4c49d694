"""
Document AI Assistant — Document Classification
================================================

What:  Classifies a document as a SAFe/Agile artifact and recommends where
       to file it, using the owner's existing folders as context.

Flow:
    1. (document_id given) load the document first, so a foreign or
       missing id is a 404 before any provider call
    2. build folder patterns: per folder the document count, file types,
       artifact types and up to three sample titles
    3. ask the classification provider for one JSON object
    4. validate it against DocumentClassification; any mismatch is a
       MalformedResponseError and nothing is written
    5. (document_id given) store artifact_type, tags (key themes) and the
       suggested folder when it is one of the owner's folders
"""

import json
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import pydantic
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.exceptions import MalformedResponseError
from docassist.models import Document, Folder
from docassist.schemas.classification import ClassifyRequest, ClassifyResponse, DocumentClassification
from docassist.security import OwnerContext
from docassist.services.base import database_errors
from docassist.services.content_service import document_service
from docassist.services.folder_service import folder_service
from docassist.services.llm_base import LLMService, parse_json_response
from docassist.services.llm_providers import provider_for

logger = logging.getLogger(__name__)

CONTENT_PREVIEW_CHARS = 3000
SAMPLE_DOCUMENT_LIMIT = 50
SAMPLE_TITLES = 3

CLASSIFICATION_PROMPT = """You are an expert document classifier specializing in SAFe/Agile organizational structures. Analyze this document and provide intelligent classification and folder placement suggestions.

**DOCUMENT TO CLASSIFY:**
Title: {title}
File Type: {file_type}
Content Preview: {content}...

**EXISTING FOLDER STRUCTURE:**
{folders}

**ANALYSIS REQUIRED:**
1. **Document Type Classification**: Identify what type of SAFe/Agile artifact this is
2. **Business Purpose**: Understand the document's role in the development process
3. **Content Analysis**: Analyze themes, stakeholders, and business context
4. **Folder Recommendation**: Suggest the most appropriate existing folder OR recommend creating a new folder
5. **Organization Insights**: Identify if existing organization could be improved

**RETURN FORMAT (JSON only, no prose):**
{{
  "classification": {{
    "documentType": "user_story|epic|feature|requirement|meeting_notes|technical_doc|process_doc|presentation|data_config|other",
    "confidence": 0.95,
    "businessPurpose": "Brief description of document's role",
    "keyThemes": ["theme1", "theme2", "theme3"],
    "stakeholders": ["role1", "role2"],
    "maturityLevel": "basic|intermediate|advanced"
  }},
  "folderRecommendation": {{
    "suggestedFolderId": "existing_folder_id_or_null",
    "suggestedFolderName": "folder_name",
    "confidence": 0.90,
    "reasoning": "Why this folder is appropriate",
    "alternativeOptions": [
      {{"folderId": "alt_id", "folderName": "alt_name", "reasoning": "alternative reason"}}
    ]
  }},
  "organizationInsights": {{
    "isWellOrganized": true,
    "misplacedDocuments": ["doc_title1", "doc_title2"],
    "suggestedNewFolders": ["New Folder Name 1", "New Folder Name 2"],
    "improvementRecommendations": "How to better organize the workspace"
  }},
  "contentInsights": {{
    "completeness": "complete|incomplete|draft",
    "qualityScore": 0.85,
    "missingElements": ["acceptance_criteria", "business_value"],
    "recommendations": "Specific suggestions to improve this document"
  }}
}}

Confidence and quality scores are numbers between 0 and 1."""


def build_folder_patterns(folders: List[Any], documents: List[Any]) -> List[Dict[str, Any]]:
    """One summary per folder from a sample of the owner's documents."""
    patterns = []
    for folder in folders:
        docs = [doc for doc in documents if doc.folder_id == folder.id]
        patterns.append(
            {
                "name": folder.name,
                "id": str(folder.id),
                "documentCount": len(docs),
                "commonFileTypes": sorted({doc.file_type for doc in docs if doc.file_type}),
                "commonArtifactTypes": sorted({doc.artifact_type for doc in docs if doc.artifact_type}),
                "sampleTitles": [doc.title for doc in docs[:SAMPLE_TITLES]],
            }
        )
    return patterns


def validate_classification(data: Any, provider: str = "llm") -> DocumentClassification:
    try:
        return DocumentClassification.model_validate(data)
    except pydantic.ValidationError as exc:
        logger.warning("Classification response rejected: %d schema errors", exc.error_count())
        raise MalformedResponseError(
            context={
                "provider": provider,
                "errors": [
                    {"loc": ".".join(str(p) for p in err["loc"]), "type": err["type"]}
                    for err in exc.errors()[:10]
                ],
            },
        ) from exc


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    try:
        return UUID(str(value)) if value else None
    except ValueError:
        return None


class ClassificationService:
    async def classify(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        request: ClassifyRequest,
        llm: Optional[LLMService] = None,
    ) -> ClassifyResponse:
        document = None
        if request.document_id is not None:
            document = await document_service.get_row(db, owner, request.document_id)

        folders = await folder_service.list_rows(db, owner)
        with database_errors("load documents for classification", owner=str(owner.user_id)):
            result = await db.execute(
                select(Document)
                .where(Document.user_id == owner.user_id)
                .order_by(Document.updated_at.desc())
                .limit(SAMPLE_DOCUMENT_LIMIT)
            )
            sample_docs = list(result.scalars().all())

        prompt = CLASSIFICATION_PROMPT.format(
            title=request.title,
            file_type=request.file_type,
            content=request.content[:CONTENT_PREVIEW_CHARS],
            folders=json.dumps(build_folder_patterns(folders, sample_docs), indent=2),
        )

        provider = llm or provider_for("classification")
        answer = await provider.generate(prompt, max_tokens=2000, temperature=0.3, json_output=True)
        classification = validate_classification(
            parse_json_response(answer, provider=provider.name), provider=provider.name
        )

        updated = False
        if document is not None:
            await self._apply(db, owner, document, classification, folders)
            updated = True

        logger.info(
            "Classified '%s' as %s (%.2f)",
            request.title[:80],
            classification.classification.document_type,
            classification.classification.confidence,
        )
        return ClassifyResponse(classification=classification, document_updated=updated)

    async def _apply(
        self,
        db: AsyncSession,
        owner: OwnerContext,
        document: Document,
        classification: DocumentClassification,
        folders: List[Folder],
    ) -> None:
        document.artifact_type = classification.classification.document_type
        document.tags = list(classification.classification.key_themes)

        suggested = _as_uuid(classification.folder_recommendation.suggested_folder_id)
        if suggested is not None and suggested in {folder.id for folder in folders}:
            document.folder_id = suggested
        elif suggested is not None:
            logger.info("Ignoring suggested folder %s: not one of the owner's folders", suggested)

        with database_errors("update document classification", document_id=str(document.id)):
            await db.flush()


# ── Singleton Instance ────────────────────────────────────────────────────
classification_service = ClassificationService()
