"""
Calsnap Data Transfer Objects (DTOs)

This module contains the canonical event record and all Pydantic models
used by the API routes:
- Event, the canonical value object produced by the canonicalizer
- Request models for the extraction and calendar endpoints
- Response models for events, errors and health checks
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class Event(BaseModel):
    """Canonical calendar event. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    title: str
    start_datetime: str
    end_datetime: str
    location: str = ""
    description: str = ""
    original_link: Optional[str] = None


class TextExtractionRequest(BaseModel):
    """Request model for free text extraction."""
    text: Optional[str] = None
    content: Optional[str] = None
    userTimeZone: Optional[str] = None
    original_date: Optional[Any] = None


class UrlExtractionRequest(BaseModel):
    """Request model for web page extraction."""
    url: Optional[str] = None
    userTimeZone: Optional[str] = None


class FileExtractionRequest(BaseModel):
    """Request model for base64 encoded media extraction."""
    fileData: Optional[str] = None
    fileType: Optional[str] = None
    fileName: Optional[str] = None
    userTimeZone: Optional[str] = None


class CalendarRequest(BaseModel):
    """Request model for calendar document generation.

    Events are accepted loosely typed; the serializer tolerates
    records that never went through the canonicalizer.
    """
    events: Optional[List[Dict[str, Any]]] = None
    event: Optional[Dict[str, Any]] = None


class EventsResponse(BaseModel):
    """Response model for all extraction endpoints."""
    events: List[Event]


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""
    error: str


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: Optional[str] = None
    components: Optional[Dict[str, str]] = None
    supported_formats: Optional[Dict[str, List[str]]] = None
    max_file_size_mb: Optional[int] = None
