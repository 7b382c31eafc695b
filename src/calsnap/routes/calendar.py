from fastapi import APIRouter
from fastapi.responses import Response
import logging

from calsnap.constants import ICS_SETTINGS
from calsnap.dto import CalendarRequest, ErrorResponse
from calsnap.errors import InputValidationError
from calsnap.ics.serializer import CalendarSerializer, calendar_filename

logger = logging.getLogger(__name__)

router = APIRouter()

serializer = CalendarSerializer()


@router.post(
    "",
    response_class=Response,
    responses={
        200: {"content": {"text/calendar": {}}, "description": "iCalendar document"},
        400: {"model": ErrorResponse, "description": "No events in the request"},
    },
)
async def generate_calendar(request: CalendarRequest):
    """
    Generate an .ics calendar document.

    Accepts either a list of events or a single event. The document is
    returned as an attachment named after the event, or events.ics when
    several events are included.
    """
    if request.events:
        events = request.events
    elif request.event:
        events = [request.event]
    else:
        raise InputValidationError("No valid events provided")

    logger.info("Generating calendar for %d event(s)", len(events))
    document = serializer.serialize(events)

    return Response(
        content=document,
        media_type=ICS_SETTINGS.MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{calendar_filename(events)}"'},
    )
