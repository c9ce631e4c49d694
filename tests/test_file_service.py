"""
Document AI Assistant — File Service Unit Tests
================================================

What we test:
    ✅ Extension allow-lists for documents and recordings
    ✅ Size limits and empty uploads
    ✅ MIME sniffing must agree with the extension
    ✅ Keys are owner-prefixed and only resolve for their owner
    ❌ libmagic output for binary audio (patched; varies by libmagic version)
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from docassist.config import settings
from docassist.exceptions import NotFoundError, ValidationError
from docassist.services.file_service import AUDIO_TYPES, DOCUMENT_TYPES, FileService


class TestValidation:
    def setup_method(self):
        self.service = FileService()

    def test_document_extensions(self):
        for name in ("spec.pdf", "spec.DOCX", "notes.txt", "README.md"):
            assert self.service._validate_extension(name, DOCUMENT_TYPES) in DOCUMENT_TYPES

    def test_audio_extensions(self):
        for name in ("call.mp3", "call.wav", "call.m4a", "call.mp4", "call.webm"):
            assert self.service._validate_extension(name, AUDIO_TYPES) in AUDIO_TYPES

    def test_rejected_extensions(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service._validate_extension("malware.exe", DOCUMENT_TYPES)
        with pytest.raises(ValidationError):
            self.service._validate_extension("notes.txt", AUDIO_TYPES)
        with pytest.raises(ValidationError):
            self.service._validate_extension("no_extension", DOCUMENT_TYPES)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service._validate_size(b"", None)

    def test_too_large(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service._validate_size(b"x", settings.max_file_size + 1)

    def test_at_limit(self):
        self.service._validate_size(b"x", settings.max_file_size)

    def test_text_mime(self):
        mime = self.service._validate_mime_type(b"Plain meeting notes\n", ".txt", DOCUMENT_TYPES[".txt"])
        assert mime.startswith("text/")

    def test_mime_mismatch(self):
        with patch("docassist.services.file_service.magic.from_buffer", return_value="image/png"):
            with pytest.raises(ValidationError, match="does not match"):
                self.service._validate_mime_type(b"\x89PNG", ".mp3", AUDIO_TYPES[".mp3"])


class TestStorage:
    async def test_store_document_under_owner_prefix(self, temp_storage, owner):
        service = FileService(storage_root=str(temp_storage))

        key, file_type = await service.store_document(owner, "minutes.md", b"# Minutes\n")

        assert file_type == "md"
        assert key.startswith(f"{owner.user_id}/")
        assert key.endswith(".md")
        assert (Path(temp_storage) / key).read_bytes() == b"# Minutes\n"

    async def test_store_audio(self, temp_storage, owner):
        service = FileService(storage_root=str(temp_storage))

        with patch("docassist.services.file_service.magic.from_buffer", return_value="audio/mpeg"):
            key = await service.store_audio(owner, "standup.mp3", b"ID3fake")

        assert key.endswith(".mp3")
        assert service.resolve(owner, key).read_bytes() == b"ID3fake"

    async def test_resolve_is_owner_scoped(self, temp_storage, owner, other_owner):
        service = FileService(storage_root=str(temp_storage))
        key, _ = await service.store_document(owner, "a.txt", b"secret plans\n")

        with pytest.raises(NotFoundError):
            service.resolve(other_owner, key)

    def test_resolve_rejects_traversal(self, temp_storage, owner):
        service = FileService(storage_root=str(temp_storage))

        with pytest.raises(NotFoundError):
            service.resolve(owner, f"{owner.user_id}/../../etc/passwd")

    def test_url_round_trip(self):
        assert FileService.key_from_url(FileService.url_for("u/2024/a.txt")) == "u/2024/a.txt"

    def test_decode_text(self):
        assert FileService.decode_text(b"hello", "txt") == "hello"
        assert FileService.decode_text(b"%PDF", "pdf") is None

    async def test_cleanup_missing_file_is_quiet(self, temp_storage):
        await FileService(storage_root=str(temp_storage)).cleanup_file("nobody/none.txt")
