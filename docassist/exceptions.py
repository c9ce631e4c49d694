"""
Document AI Assistant — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions, each mapped to one HTTP status by the
       global handlers registered in main.py.
Why:   Services raise domain errors without knowing about HTTP; handlers turn
       them into a consistent JSON body.

Exception Hierarchy:
    AssistantError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found (also: not owned by caller)
    ├── FolderCycleError         → 409 Conflict
    ├── FolderNotEmptyError      → 409 Conflict
    ├── LLMServiceError          → 500 (generic message, details logged)
    │   └── MalformedResponseError → 500 (distinguishable error code)
    ├── FileStorageError         → 500
    └── DatabaseError            → 500
"""

from typing import Any, Dict, Optional


class AssistantError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing description (safe to return in API responses)
        context:  Debug details (logged, never returned for server errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AssistantError):
    """Client input failed a business rule (missing field, bad format)."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(AssistantError):
    """
    Caller identity is missing, invalid, or does not match the request.

    Raised before any side effect; the handler never echoes token contents.
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(AssistantError):
    """
    Referenced entity is absent or belongs to another owner.

    Both cases share one status so a caller cannot probe other users' ids.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FolderCycleError(AssistantError):
    """Reparenting would make a folder its own ancestor."""

    def __init__(
        self,
        folder_id: Optional[str] = None,
        new_parent_id: Optional[str] = None,
    ):
        super().__init__(
            message="Cannot move folder: this would create a circular reference",
            context={"folder_id": folder_id, "new_parent_id": new_parent_id},
        )


class FolderNotEmptyError(AssistantError):
    """
    Folder still has subfolders or directly assigned content.

    `reason` is "subfolders" or "content" so clients can tell them apart.
    """

    MESSAGES = {
        "subfolders": "Cannot delete folder with subfolders. Please delete subfolders first.",
        "content": (
            "Cannot delete folder containing documents, notes or audio. "
            "Please move or delete them first."
        ),
    }

    def __init__(self, reason: str, counts: Optional[Dict[str, int]] = None):
        super().__init__(
            message=self.MESSAGES.get(reason, "Folder is not empty"),
            context={"reason": reason, **(counts or {})},
        )
        self.reason = reason


class LLMServiceError(AssistantError):
    """
    A text-generation provider failed (network, quota, auth, timeout).

    No retry beyond the configured tenacity attempts; the client sees a
    generic message and may try again.
    """

    def __init__(
        self,
        message: str = "The AI service request failed. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MalformedResponseError(LLMServiceError):
    """The provider answered, but the output does not match the expected shape."""

    def __init__(
        self,
        message: str = "The AI service returned a response that could not be understood.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(AssistantError):
    """Reading or writing the storage volume failed."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(AssistantError):
    """
    A query or write failed unexpectedly.

    The response message is always generic; SQL details stay in the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
