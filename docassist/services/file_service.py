"""
Document AI Assistant — File Storage Service
=============================================

What:  Validates uploads and keeps them on the storage volume under an
       owner prefix.
Who:   Document and audio upload routes, the meeting pipeline (reads audio
       back for transcription) and GET /api/files/{key}.

Storage keys:
    <owner-id>/<yyyy>/<mm>/<dd>/<uuid><ext>

    The owner prefix is the access rule: a key is only resolved for the
    caller whose id it starts with. Filenames never contain user input.

Upload checks, cheapest first:
    1. extension in the allowed set for the upload kind
    2. size (Content-Length, then actual bytes; empty files rejected)
    3. MIME type from the file's magic bytes (python-magic)
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple

import aiofiles
import magic

from docassist.config import settings
from docassist.exceptions import FileStorageError, NotFoundError, ValidationError
from docassist.security import OwnerContext

logger = logging.getLogger(__name__)

FILES_URL_PREFIX = "/api/files/"

# extension → accepted MIME types (libmagic output varies by version)
DOCUMENT_TYPES: Dict[str, Tuple[str, ...]] = {
    ".pdf": ("application/pdf",),
    ".docx": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/zip",
    ),
    ".txt": ("text/",),
    ".md": ("text/",),
}

AUDIO_TYPES: Dict[str, Tuple[str, ...]] = {
    ".mp3": ("audio/mpeg", "audio/mp3"),
    ".wav": ("audio/wav", "audio/x-wav", "audio/wave"),
    ".m4a": ("audio/mp4", "audio/x-m4a", "video/mp4"),
    ".mp4": ("audio/mp4", "video/mp4"),
    ".webm": ("audio/webm", "video/webm"),
}

TEXT_EXTENSIONS = {".txt", ".md"}

AUDIO_MIME_BY_EXTENSION = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".webm": "audio/webm",
}


class FileService:
    """Upload validation plus owner-prefixed storage on local disk."""

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_extension(self, filename: str, allowed: Dict[str, Tuple[str, ...]]) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def _validate_size(self, content: bytes, content_length: Optional[int]) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="file")

        size = max(len(content), content_length or 0)
        if size > settings.max_file_size:
            raise ValidationError(
                message=f"File is too large ({size / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    def _validate_mime_type(self, content: bytes, ext: str, accepted: Tuple[str, ...]) -> str:
        try:
            mime_type = magic.from_buffer(content[:4096], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            ) from e

        if not any(mime_type.startswith(prefix) for prefix in accepted):
            raise ValidationError(
                message=f"File content type '{mime_type}' does not match the '{ext}' extension.",
                field="file",
                context={"detected_mime": mime_type, "extension": ext},
            )
        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_key(self, owner: OwnerContext, extension: str) -> str:
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        return f"{owner.user_id}/{date_dir}/{uuid.uuid4()}{extension}"

    async def _write(self, key: str, content: bytes) -> None:
        path = self.storage_root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"key": key, "os_error": str(e)},
            ) from e
        logger.info("File stored: %s (%d bytes)", key, len(content))

    async def _store(
        self,
        owner: OwnerContext,
        filename: str,
        content: bytes,
        content_length: Optional[int],
        allowed: Dict[str, Tuple[str, ...]],
    ) -> Tuple[str, str]:
        ext = self._validate_extension(filename, allowed)
        self._validate_size(content, content_length)
        self._validate_mime_type(content, ext, allowed[ext])
        key = self._generate_key(owner, ext)
        await self._write(key, content)
        return key, ext

    async def store_document(
        self,
        owner: OwnerContext,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """Returns (storage key, file type without the dot)."""
        key, ext = await self._store(owner, filename, content, content_length, DOCUMENT_TYPES)
        return key, ext.lstrip(".")

    async def store_audio(
        self,
        owner: OwnerContext,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        key, _ = await self._store(owner, filename, content, content_length, AUDIO_TYPES)
        return key

    # ── Retrieval ─────────────────────────────────────────────────────────

    @staticmethod
    def url_for(key: str) -> str:
        return f"{FILES_URL_PREFIX}{key}"

    @staticmethod
    def key_from_url(file_url: str) -> str:
        if file_url.startswith(FILES_URL_PREFIX):
            return file_url[len(FILES_URL_PREFIX):]
        return file_url

    def resolve(self, owner: OwnerContext, key: str) -> Path:
        """
        Absolute path of an owned, existing file.

        Keys outside the caller's prefix, traversal attempts and missing
        files are all reported as not found.
        """
        if not key.startswith(f"{owner.user_id}/"):
            raise NotFoundError(resource="file", resource_id=key)

        owner_root = (self.storage_root / str(owner.user_id)).resolve()
        path = (self.storage_root / key).resolve()
        if owner_root not in path.parents or not path.is_file():
            raise NotFoundError(resource="file", resource_id=key)
        return path

    @staticmethod
    def decode_text(content: bytes, file_type: str) -> Optional[str]:
        """Text of a txt/md upload; None for binary formats."""
        if f".{file_type.lower()}" not in TEXT_EXTENSIONS:
            return None
        return content.decode("utf-8", errors="replace")

    @staticmethod
    def audio_mime_type(path: Path) -> str:
        return AUDIO_MIME_BY_EXTENSION.get(path.suffix.lower(), "audio/mpeg")

    async def cleanup_file(self, key: str) -> None:
        """Best-effort removal after a failed upload; errors are only logged."""
        try:
            path = self.storage_root / key
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", key)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", key, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
