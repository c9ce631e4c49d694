"""
Document Route Handlers
=======================

What:  /api/documents: CRUD, multipart upload, folder placement and
       LLM classification.

Upload handling:
    txt/md uploads have their text decoded and stored as the document
    content; pdf/docx keep whatever content the client extracted and sent
    in the form (possibly empty).
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from docassist.database import get_db_session
from docassist.exceptions import ValidationError
from docassist.schemas.classification import ClassifyRequest, ClassifyResponse
from docassist.schemas.common import ErrorResponse
from docassist.schemas.content import (
    DocumentCreate,
    DocumentResponse,
    DocumentUpdate,
    FolderAssignment,
)
from docassist.security import OwnerContext, get_owner
from docassist.services.classification_service import classification_service
from docassist.services.content_service import document_service
from docassist.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])

NOT_FOUND = {404: {"description": "Document or folder not found", "model": ErrorResponse}}


@router.get("", response_model=List[DocumentResponse], summary="List documents")
async def list_documents(
    folder_id: Optional[UUID] = Query(default=None, description="Only documents in this folder"),
    unfiled: bool = Query(default=False, description="Only documents without a folder"),
    q: Optional[str] = Query(default=None, max_length=200, description="Title/content search"),
    limit: int = Query(default=100, ge=1, le=500),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> List[DocumentResponse]:
    return await document_service.list_items(
        db, owner, folder_id=folder_id, unfiled=unfiled, query=q, limit=limit
    )


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Create a document from JSON",
)
async def create_document(
    payload: DocumentCreate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> DocumentResponse:
    return await document_service.create(db, owner, payload)


@router.post(
    "/upload",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Unsupported or oversized file", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Upload a document file (pdf, docx, txt, md)",
)
async def upload_document(
    request: Request,
    file: UploadFile = File(..., description="Document file"),
    title: Optional[str] = Form(default=None, max_length=500),
    content: str = Form(default=""),
    tags: str = Form(default="", description="Comma-separated tags"),
    artifact_type: Optional[str] = Form(default=None, max_length=100),
    priority: Optional[str] = Form(default=None, max_length=20),
    folder_id: Optional[UUID] = Form(default=None),
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> DocumentResponse:
    raw = await file.read()
    content_length = request.headers.get("content-length")
    key, file_type = await file_service.store_document(
        owner,
        filename=file.filename or "",
        content=raw,
        content_length=int(content_length) if content_length and content_length.isdigit() else None,
    )

    decoded = file_service.decode_text(raw, file_type)
    try:
        payload = DocumentCreate(
            title=title or (file.filename or "Untitled"),
            content=decoded if decoded is not None else content,
            file_url=file_service.url_for(key),
            file_type=file_type,
            file_size=len(raw),
            tags=[tag.strip() for tag in tags.split(",") if tag.strip()],
            artifact_type=artifact_type,
            priority=priority,
            folder_id=folder_id,
        )
        return await document_service.create(db, owner, payload)
    except PydanticValidationError as e:
        await file_service.cleanup_file(key)
        raise ValidationError(
            message="Document fields are invalid",
            context={
                "errors": [
                    {"loc": [str(p) for p in err["loc"]], "msg": err["msg"]} for err in e.errors()
                ]
            },
        ) from e
    except Exception:
        await file_service.cleanup_file(key)
        raise


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    responses={
        **NOT_FOUND,
        500: {"description": "AI service failure or malformed AI output", "model": ErrorResponse},
    },
    summary="Classify a document and suggest a folder",
)
async def classify_document(
    payload: ClassifyRequest,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ClassifyResponse:
    """
    Asks the classification provider for a SAFe artifact type, folder
    recommendation and content insights. With a documentId the stored
    document's artifact type, tags and folder are updated from the result.
    """
    return await classification_service.classify(db, owner, payload)


@router.get("/{document_id}", response_model=DocumentResponse, responses=NOT_FOUND)
async def get_document(
    document_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> DocumentResponse:
    return await document_service.get(db, owner, document_id)


@router.put("/{document_id}", response_model=DocumentResponse, responses=NOT_FOUND)
async def update_document(
    document_id: UUID,
    payload: DocumentUpdate,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> DocumentResponse:
    return await document_service.update(db, owner, document_id, payload)


@router.patch(
    "/{document_id}/folder",
    response_model=DocumentResponse,
    responses=NOT_FOUND,
    summary="Move a document into a folder (null unfiles it)",
)
async def move_document(
    document_id: UUID,
    payload: FolderAssignment,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> DocumentResponse:
    return await document_service.move_to_folder(db, owner, document_id, payload.folder_id)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_document(
    document_id: UUID,
    owner: OwnerContext = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await document_service.delete(db, owner, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
