from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from typing import Optional
import logging

from calsnap.constants import UPLOAD_SETTINGS
from calsnap.dto import ErrorResponse, EventsResponse, FileExtractionRequest, TextExtractionRequest, UrlExtractionRequest
from calsnap.pipeline import EventExtractionPipeline, check_file_size
from calsnap.routes.dependencies import get_pipeline

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed input"},
    500: {"model": ErrorResponse, "description": "The extraction oracle failed"},
}

FILE_ERROR_RESPONSES = {
    **ERROR_RESPONSES,
    413: {"model": ErrorResponse, "description": "File exceeds the size limit"},
}


@router.post("/extract-from-text", response_model=EventsResponse, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def extract_from_text(
    request: TextExtractionRequest,
    pipeline: EventExtractionPipeline = Depends(get_pipeline),
):
    """
    Extract calendar events from free text.

    Relative phrases ("tomorrow at 3pm") are resolved against the current
    time in the user's timezone; all returned datetimes are UTC.
    """
    events = await pipeline.extract_from_text(
        request.text or request.content,
        request.userTimeZone,
        original_date=request.original_date,
    )
    return EventsResponse(events=events)


@router.post("/extract-from-url", response_model=EventsResponse, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def extract_from_url(
    request: UrlExtractionRequest,
    pipeline: EventExtractionPipeline = Depends(get_pipeline),
):
    """
    Extract calendar events from a web page.

    Embedded schema.org events, datetime attributes and date-like text guide
    the extraction. Pages that cannot be fetched yield a placeholder event.
    """
    events = await pipeline.extract_from_url(request.url, request.userTimeZone)
    return EventsResponse(events=events)


@router.post("/extract-from-file", response_model=EventsResponse, response_model_exclude_none=True, responses=FILE_ERROR_RESPONSES)
async def extract_from_file(
    request: FileExtractionRequest,
    pipeline: EventExtractionPipeline = Depends(get_pipeline),
):
    """Extract calendar events from a base64 encoded document, image or audio recording."""
    events = await pipeline.extract_from_file(
        request.fileData,
        request.fileType,
        request.fileName,
        request.userTimeZone,
    )
    return EventsResponse(events=events)


@router.post("/extract-from-file/upload", response_model=EventsResponse, response_model_exclude_none=True, responses=FILE_ERROR_RESPONSES)
async def upload_file(
    file: UploadFile = File(...),
    userTimeZone: Optional[str] = Form(default=None),
    pipeline: EventExtractionPipeline = Depends(get_pipeline),
):
    """
    Extract calendar events from a multipart file upload.

    The body is read in fixed-size chunks so an oversized upload is rejected
    before it is fully buffered. The oracle upload needs the whole payload,
    so accepted files are held in memory.

    Args:
        file: The uploaded document, image or audio recording
        userTimeZone: IANA timezone name of the user

    Returns:
        Extracted events
    """
    chunk_size = UPLOAD_SETTINGS.STREAMING_CHUNK_SIZE_KB * 1024  # Convert KB to bytes
    buffer = bytearray()

    await file.seek(0)

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break

        # Check file size during streaming to stop oversized uploads early
        check_file_size(len(buffer) + len(chunk))
        buffer.extend(chunk)

    if not buffer:
        raise HTTPException(
            status_code=400,
            detail="Empty file is not allowed"
        )

    logger.info("Received upload %s (%s, %d bytes)", file.filename, file.content_type, len(buffer))
    events = await pipeline.extract_from_media(
        bytes(buffer),
        file.content_type,
        file.filename,
        userTimeZone,
    )
    return EventsResponse(events=events)


@router.get("/extract-from-file/formats")
async def supported_formats():
    """Get information about supported file formats."""
    return {
        "supported_formats": {
            "document": list(UPLOAD_SETTINGS.DOCUMENT_TYPES),
            "image": list(UPLOAD_SETTINGS.IMAGE_TYPES),
            "audio": list(UPLOAD_SETTINGS.AUDIO_TYPES),
        },
        "limits": {
            "max_file_size_mb": UPLOAD_SETTINGS.MAX_FILE_SIZE_MB,
            "streaming_chunk_size_kb": UPLOAD_SETTINGS.STREAMING_CHUNK_SIZE_KB,
        }
    }
