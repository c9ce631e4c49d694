"""
Shared column definitions for owner-scoped tables.

Every table carries a UUID primary key, the owning user's id and UTC
timestamps. Portable SQLAlchemy types (Uuid, JSON, DateTime(timezone=True))
keep the models usable on PostgreSQL in production and SQLite in tests.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OwnedRecordMixin:
    """id + user_id + created_at/updated_at."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # The auth backend owns the users table; this is a weak reference
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
