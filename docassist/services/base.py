"""
Helpers shared by the persistence services.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from docassist.exceptions import DatabaseError

logger = logging.getLogger(__name__)


@contextmanager
def database_errors(action: str, **context: Any) -> Iterator[None]:
    """
    Re-raises SQLAlchemy failures inside the block as DatabaseError.

    Application exceptions (NotFoundError, FolderCycleError, ...) pass
    through untouched. The SQL text stays in the log, never in the response.

    Usage:
        with database_errors("load folders", owner=str(owner.user_id)):
            result = await db.execute(query)
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Database error (%s): %s", action, exc, exc_info=True)
        raise DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={"error_type": type(exc).__name__, **context},
        ) from exc


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
