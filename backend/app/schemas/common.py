"""
Eclairum Backend — Shared Pydantic Schemas
============================================

What:  Response models shared by every route: error body, health, pagination meta.
How:   FastAPI uses these to serialize responses and generate OpenAPI docs.
"""

import math
from typing import Optional

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """
    What:  Page-number pagination metadata.
    Who:   Embedded in every paginated list response.
    """
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Items per page")
    total_items: int = Field(description="Total number of items across all pages")
    total_pages: int = Field(description="Number of pages for this limit")

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> "PaginationMeta":
        return cls(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=math.ceil(total_items / limit) if limit else 0,
        )


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "quiz generation task with ID '...' was not found",
            "details": {"resource": "quiz generation task"},
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    llm: str = Field(description="Quiz generator status: available, unavailable, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")
