"""
Document AI Assistant — Application Package
============================================

What:  Backend API for SAFe/Agile teams: documents, notes, audio, folders,
       todos, notifications and LLM-backed assistance.
Who:   Imported by uvicorn (docassist.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Owner-scoped rules, LLM glue
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every service call receives an explicit OwnerContext (see security.py);
    the owner id is the only isolation boundary between users' data.
"""

__version__ = "1.0.0"
