"""
Document AI Assistant — Test Configuration (conftest.py)
=========================================================

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine / session_factory / session: SQLite database in tmp_path
    ├── owner / other_owner: authenticated callers
    ├── make_token / auth_headers: signed bearer tokens
    ├── fake_llm: LLMService stand-in with a scripted generate()
    ├── temp_storage: FileService rooted in tmp_path
    └── test_client: HTTPX AsyncClient bound to the app and the test database
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time; configure before any docassist import.
_TEST_ROOT = tempfile.mkdtemp(prefix="docassist_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["JWT_SECRET"] = "test-secret-not-real-but-long-enough-for-hs256"
os.environ["GEMINI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = "test-key-not-real"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ["LOG_LEVEL"] = "WARNING"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

import docassist.models  # noqa: E402,F401
from docassist.config import settings  # noqa: E402
from docassist.database import Base, get_db_session, get_session_factory  # noqa: E402
from docassist.security import OwnerContext  # noqa: E402
from docassist.services.llm_base import LLMService  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/test.db",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


# ══════════════════════════════════════════════════════════════════════════
# Callers and tokens
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def owner():
    return OwnerContext(user_id=uuid.uuid4(), email="owner@example.com")


@pytest.fixture
def other_owner():
    return OwnerContext(user_id=uuid.uuid4(), email="other@example.com")


@pytest.fixture
def make_token():
    def _make(sub, expires_in=timedelta(hours=1), audience="authenticated", secret=None):
        payload = {
            "sub": str(sub),
            "aud": audience,
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        return jwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(owner, make_token):
    return {"Authorization": f"Bearer {make_token(owner.user_id)}"}


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_llm():
    """
    Usage:
        fake_llm.generate.return_value = '[{"title": "Ship it"}]'
    """
    llm = MagicMock(spec=LLMService)
    llm.name = "fake"
    llm.generate = AsyncMock(return_value="")
    llm.health_check = AsyncMock(return_value=True)
    return llm


@pytest.fixture
def temp_storage(tmp_path, monkeypatch):
    """Points the shared FileService at a fresh directory."""
    from docassist.services.file_service import file_service

    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    monkeypatch.setattr(file_service, "storage_root", storage_dir)
    return storage_dir


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    from docassist.main import app

    async def _test_db_session():
        async with session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
