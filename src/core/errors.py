"""
Error taxonomy for color slot resolution.

Every failure the resolver can report is one of four classes. Callers can
either catch them or use ``LabelResolver.try_resolve`` and match on the
returned variant:

    match resolver.try_resolve(label):
        case Ok(color_id=color_id): ...
        case NoCapacity(): ...
        case LockTimeout() | StoreUnavailable(): ...
        case ConfigurationError(): ...
"""

from dataclasses import dataclass


class ResolutionError(Exception):
    """Base class for color slot resolution failures."""

    code = "RESOLUTION_ERROR"
    retryable = False


class ConfigurationError(ResolutionError):
    """Colors table is missing or its schema is malformed. Never retried."""

    code = "CONFIGURATION_ERROR"
    retryable = False


class LockTimeout(ResolutionError):
    """Allocation lock could not be acquired in time. No mutation happened."""

    code = "LOCK_TIMEOUT"
    retryable = True


class StoreUnavailable(ResolutionError):
    """Reading or writing the colors table failed."""

    code = "STORE_UNAVAILABLE"
    retryable = True


class NoCapacity(ResolutionError):
    """Every slot is bound and the label is new. An operator must add slots."""

    code = "NO_COLOR_CAPACITY"
    retryable = False

    def __init__(self, label: str):
        super().__init__(f"No empty label slots left in colors sheet for label: {label}")
        self.label = label


@dataclass(frozen=True)
class Ok:
    """Successful resolution. ``color_id`` is None when no label was given."""

    color_id: int | None


Resolution = Ok | ConfigurationError | LockTimeout | StoreUnavailable | NoCapacity


class EventParseError(ValueError):
    """The text could not be turned into a valid event."""

    code = "PARSE_FAILED"
