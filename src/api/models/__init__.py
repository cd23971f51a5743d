"""API Pydantic models."""

from .requests import EventRequest
from .responses import (
    CreatedEvent,
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    HealthResponse,
    ResolvedColor,
)

__all__ = [
    "EventRequest",
    "EventResponse",
    "ResolvedColor",
    "CreatedEvent",
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
]
