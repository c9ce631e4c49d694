"""ORM models; importing this package registers every table with Base.metadata."""

from docassist.models.content import Audio, CONTENT_MODELS, Document, Note
from docassist.models.folder import Folder
from docassist.models.notification import Chat, Notification
from docassist.models.todo import Todo

__all__ = [
    "Audio",
    "CONTENT_MODELS",
    "Chat",
    "Document",
    "Folder",
    "Note",
    "Notification",
    "Todo",
]
