"""API-specific response schemas (Pydantic v2)."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error envelope read by the UI shell."""

    details: str
    error: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    status: str = "ok"
    version: str
    cache_entries: int
    cache_capacity: int
