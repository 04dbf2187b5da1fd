"""
Storefront Backend — Shared Response Schemas
==============================================

What:  Error envelope, health check and simple acknowledgement models
       shared by every router.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from storefront.models._time import to_utc


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Field validator body for response timestamps.

    SQLite hands DATETIME columns back naive even though every stored value
    is UTC, while freshly inserted rows still carry tzinfo. Normalizing here
    gives POST and GET responses the same offset.
    """
    if value is None:
        return None
    return to_utc(value)


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Category with ID '9' does not exist",
            "details": {"field": "category_id"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str
    affected: int = Field(default=0, description="Number of rows affected")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
