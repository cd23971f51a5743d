"""Pydantic response models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from models.events import ParsedEvent


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    colors_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ResolvedColor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    color_id: int | None = Field(default=None, alias="colorId")


class CreatedEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None
    web_link: str | None = Field(default=None, alias="webLink")


class EventResponse(BaseModel):
    """Successful event creation (or dry run)."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    time_zone: str = Field(alias="timeZone")
    parsed: ParsedEvent
    resolved: ResolvedColor
    created: CreatedEvent | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"
    PARSE_FAILED = "PARSE_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    NO_COLOR_CAPACITY = "NO_COLOR_CAPACITY"
    CALENDAR_ERROR = "CALENDAR_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
