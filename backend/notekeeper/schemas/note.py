"""
Notekeeper Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract between client and backend.
Why:   Automatic serialization and OpenAPI doc generation.
How:   FastAPI uses these to parse request bodies and serialize responses.

Wire format:
    Field names are camelCase on the wire (createdAt, updatedAt) and
    snake_case in Python; alias_generator handles the translation.

Design Decision:
    NoteWrite declares both fields optional on purpose. Missing or blank
    fields are rejected by NoteService with a ValidationError, so every
    validation failure goes through one error mapping instead of FastAPI's
    automatic 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NoteWrite(BaseModel):
    """Body of POST /api/notes and PUT /api/notes/{id}."""

    title: Optional[str] = Field(default=None, description="Note title (required, non-empty)")
    content: Optional[str] = Field(default=None, description="Note body (required, non-empty)")


class NoteResponse(BaseModel):
    """
    What:  Full representation of a stored note.
    Who:   Returned by every /api/notes endpoint (list returns an array of these).
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    content: str
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last successful update (UTC ISO 8601)")


class MessageResponse(BaseModel):
    """
    Error body shared by all endpoints.

    Example:
        {"message": "Note not found"}
    """

    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    rate_limiter: str = Field(description="Admission gate backend: available, unavailable, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")
