"""
GeoPatrol Backend — Report & Common Response Schemas
======================================================

What:  Pydantic models for delivery-report responses, errors and health.

Design Decision:
    ReportResponse keeps the original column names (id_kurir, no_resi,
    foto_path) as JSON keys because the history screen reads them
    directly. foto_url is the only addition.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReportResponse(BaseModel):
    """One row of GET /api/laporan."""

    id: int = Field(description="Report id")
    id_kurir: int = Field(description="Courier who submitted the report")
    no_resi: str = Field(description="Tracking number")
    foto_path: str = Field(description="Stored photo filename")
    foto_url: str = Field(description="Path under which the photo is served")
    latitude: str
    longitude: str
    status: str = Field(description="Always 'delivered'")
    created_at: datetime = Field(description="When the report was recorded (UTC)")


class ErrorResponse(BaseModel):
    """
    Error body for every non-2xx JSON response.

    Example:
        {
            "error": "Token tidak valid",
            "code": "invalid_token",
            "request_id": "3f2a9c1d"
        }
    """

    error: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
