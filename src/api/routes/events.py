"""Event creation endpoint (schedule text -> calendar event)."""

import asyncio
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import get_calendar, get_event_parser, get_label_resolver, verify_api_key
from api.logging import RequestLog, log_request
from api.models.requests import EventRequest
from api.models.responses import CreatedEvent, ErrorCodes, EventResponse, ResolvedColor
from core.config import MAX_TEXT_LENGTH, TIME_ZONE
from core.errors import (
    ConfigurationError,
    EventParseError,
    LockTimeout,
    NoCapacity,
    ResolutionError,
    StoreUnavailable,
)
from services.calendar import GraphCalendar
from services.colors import LabelResolver
from services.parser import GeminiEventParser

router = APIRouter(prefix="/v1")

RESOLUTION_STATUS = {
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    LockTimeout: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    NoCapacity: status.HTTP_409_CONFLICT,
}

RETRY_AFTER_SECONDS = "5"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def resolution_http_error(error: ResolutionError) -> HTTPException:
    """Map a resolver failure to its HTTP error. Retryable ones get Retry-After."""
    status_code = RESOLUTION_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if error.retryable else None
    return HTTPException(
        status_code=status_code,
        detail={
            "error": str(error),
            "code": error.code,
            "details": ["retryable" if error.retryable else "not retryable"],
        },
        headers=headers,
    )


@router.post("/events", response_model=EventResponse)
async def create_event_endpoint(
    request: Request,
    body: EventRequest,
    _api_key: str = Depends(verify_api_key),
    resolver: LabelResolver = Depends(get_label_resolver),
    parser: GeminiEventParser = Depends(get_event_parser),
    calendar: GraphCalendar = Depends(get_calendar),
):
    """
    Parse schedule text, resolve its #label to a color slot and create the event.

    With dryRun the event is parsed and its color resolved (a new label still
    claims a slot) but nothing is written to the calendar.
    """
    start_time = time.time()

    request_log = RequestLog(
        endpoint="/v1/events",
        method="POST",
        client_ip=get_client_ip(request),
        text_length=len(body.text),
        dry_run=body.dry_run,
    )

    try:
        if len(body.text) > MAX_TEXT_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail={
                    "error": f"Text exceeds maximum length of {MAX_TEXT_LENGTH} characters",
                    "code": ErrorCodes.TEXT_TOO_LONG,
                    "details": [f"Text length: {len(body.text)}"],
                },
            )

        now_iso = body.now_iso or datetime.now(timezone.utc).isoformat()
        parsed = await parser.parse(body.text, now_iso, TIME_ZONE)
        request_log.label = parsed.label

        # Resolver does blocking sheet I/O and may wait on the lock
        color_id = await asyncio.to_thread(resolver.resolve, parsed.label)
        request_log.color_id = color_id

        created = None
        if not body.dry_run:
            event = await calendar.create_event(parsed, color_id)
            created = CreatedEvent(id=event.id, web_link=event.web_link)
            request_log.event_id = event.id

        request_log.status_code = 200
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        return EventResponse(
            time_zone=TIME_ZONE,
            parsed=parsed,
            resolved=ResolvedColor(color_id=color_id),
            created=created,
        )

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        raise

    except EventParseError as e:
        request_log.status_code = 502
        request_log.error_code = ErrorCodes.PARSE_FAILED
        request_log.error_message = str(e)
        request_log.details.append(("parse_error", str(e)))
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Could not parse schedule text",
                "code": ErrorCodes.PARSE_FAILED,
                "details": [str(e)],
            },
        )

    except ResolutionError as e:
        http_error = resolution_http_error(e)
        request_log.status_code = http_error.status_code
        request_log.error_code = e.code
        request_log.error_message = str(e)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        raise http_error

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Internal server error",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        # Always log the request
        try:
            log_request(request_log)
        except Exception as e:
            # Don't fail the request if logging fails
            print(f"Request log not written: {e}")
