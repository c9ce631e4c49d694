"""
Shared response models: error envelope, health report, plain messages.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body returned by every global exception handler.

    Example:
        {
            "error": "folder_cycle",
            "message": "Cannot move folder: this would create a circular reference",
            "details": {"folder_id": "...", "new_parent_id": "..."},
            "request_id": "3f2a9c1b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Service and dependency status returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    providers: Dict[str, str] = Field(
        default_factory=dict,
        description="LLM provider status by name: available, unavailable",
    )
    uptime_seconds: float = Field(description="Seconds since service started")


class MessageResponse(BaseModel):
    message: str
