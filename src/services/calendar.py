"""
Calendar event creation through MS Graph.
"""

from datetime import datetime

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient
from msgraph.generated.models.date_time_time_zone import DateTimeTimeZone
from msgraph.generated.models.day_of_week import DayOfWeek
from msgraph.generated.models.event import Event
from msgraph.generated.models.location import Location
from msgraph.generated.models.patterned_recurrence import PatternedRecurrence
from msgraph.generated.models.recurrence_pattern import RecurrencePattern
from msgraph.generated.models.recurrence_pattern_type import RecurrencePatternType
from msgraph.generated.models.recurrence_range import RecurrenceRange
from msgraph.generated.models.recurrence_range_type import RecurrenceRangeType

from core.config import (
    CALENDAR_ID,
    CALENDAR_USER,
    COLOR_CATEGORY_FORMAT,
    DEFAULT_CALENDAR_ID,
    GRAPH_APP_ID,
    GRAPH_CLIENT_SECRET,
    GRAPH_TENANT_ID,
)
from core.errors import EventParseError
from models.events import ParsedEvent

BYDAY_TO_DAY_OF_WEEK = {
    "MO": DayOfWeek.Monday,
    "TU": DayOfWeek.Tuesday,
    "WE": DayOfWeek.Wednesday,
    "TH": DayOfWeek.Thursday,
    "FR": DayOfWeek.Friday,
    "SA": DayOfWeek.Saturday,
    "SU": DayOfWeek.Sunday,
}

FREQ_TO_PATTERN_TYPE = {
    "DAILY": RecurrencePatternType.Daily,
    "WEEKLY": RecurrencePatternType.Weekly,
}

_graph_client: GraphServiceClient | None = None


def get_graph_client() -> GraphServiceClient:
    """Get or create the MS Graph client (lazy initialization)."""
    global _graph_client
    if _graph_client is None:
        credential = ClientSecretCredential(
            tenant_id=GRAPH_TENANT_ID,
            client_id=GRAPH_APP_ID,
            client_secret=GRAPH_CLIENT_SECRET,
        )
        _graph_client = GraphServiceClient(credentials=credential)
    return _graph_client


def to_local_datetime(iso_with_offset: str) -> datetime:
    """'2025-12-15T15:00:00+09:00' -> naive 2025-12-15 15:00 (wall clock time)."""
    return datetime.fromisoformat(iso_with_offset).replace(tzinfo=None)


def parse_rrule(rrule: str) -> dict[str, str]:
    """'FREQ=WEEKLY;INTERVAL=2;BYDAY=SU' -> {'FREQ': 'WEEKLY', 'INTERVAL': '2', 'BYDAY': 'SU'}"""
    rrule = rrule.strip()
    if rrule.upper().startswith("RRULE:"):
        rrule = rrule[6:]
    parts = {}
    for part in rrule.split(";"):
        if not part.strip():
            continue
        if "=" not in part:
            raise EventParseError(f"Malformed recurrence rule part: '{part}'")
        key, value = part.split("=", 1)
        parts[key.strip().upper()] = value.strip().upper()
    return parts


def build_recurrence(rrule: str, start: datetime, time_zone: str) -> PatternedRecurrence:
    """Convert a DAILY/WEEKLY RRULE into a Graph PatternedRecurrence."""
    parts = parse_rrule(rrule)

    pattern_type = FREQ_TO_PATTERN_TYPE.get(parts.get("FREQ", ""))
    if pattern_type is None:
        raise EventParseError(f"Unsupported recurrence frequency: '{parts.get('FREQ', '')}'")

    try:
        interval = int(parts.get("INTERVAL", "1"))
    except ValueError:
        raise EventParseError(f"Invalid recurrence interval: '{parts['INTERVAL']}'")

    pattern = RecurrencePattern(type=pattern_type, interval=interval)
    if pattern_type == RecurrencePatternType.Weekly:
        codes = [c for c in parts.get("BYDAY", "").split(",") if c]
        if not codes:
            # Weekly without BYDAY repeats on the start's weekday
            codes = [list(BYDAY_TO_DAY_OF_WEEK)[start.weekday()]]
        unknown = [c for c in codes if c not in BYDAY_TO_DAY_OF_WEEK]
        if unknown:
            raise EventParseError(f"Unsupported BYDAY value(s): {', '.join(unknown)}")
        pattern.days_of_week = [BYDAY_TO_DAY_OF_WEEK[c] for c in codes]

    recurrence_range = RecurrenceRange(
        type=RecurrenceRangeType.NoEnd,
        start_date=start.date(),
        recurrence_time_zone=time_zone,
    )
    try:
        if "COUNT" in parts:
            recurrence_range.type = RecurrenceRangeType.Numbered
            recurrence_range.number_of_occurrences = int(parts["COUNT"])
        elif "UNTIL" in parts:
            recurrence_range.type = RecurrenceRangeType.EndDate
            recurrence_range.end_date = datetime.strptime(parts["UNTIL"][:8], "%Y%m%d").date()
    except ValueError as e:
        raise EventParseError(f"Invalid recurrence range: {e}")

    return PatternedRecurrence(pattern=pattern, range=recurrence_range)


def color_category(color_id: int) -> str:
    return COLOR_CATEGORY_FORMAT.format(color_id=color_id)


def build_calendar_event(parsed: ParsedEvent, color_id: int | None) -> Event:
    """Convert a parsed event into an MS Graph Event object."""
    start = to_local_datetime(parsed.start)
    end = to_local_datetime(parsed.end)

    event = Event(
        subject=parsed.title,
        start=DateTimeTimeZone(
            date_time=start.strftime("%Y-%m-%dT%H:%M:%S"),
            time_zone=parsed.timezone,
        ),
        end=DateTimeTimeZone(
            date_time=end.strftime("%Y-%m-%dT%H:%M:%S"),
            time_zone=parsed.timezone,
        ),
    )
    if parsed.location:
        event.location = Location(display_name=parsed.location)
    if parsed.recurrence:
        event.recurrence = build_recurrence(parsed.recurrence.rrule, start, parsed.timezone)
    if color_id is not None:
        event.categories = [color_category(color_id)]
    return event


class GraphCalendar:
    """Creates events in one user's calendar."""

    def __init__(self, user_id: str = CALENDAR_USER, calendar_id: str = CALENDAR_ID, graph=None):
        self.user_id = user_id
        self.calendar_id = calendar_id
        self._graph = graph

    @property
    def graph(self) -> GraphServiceClient:
        if self._graph is None:
            self._graph = get_graph_client()
        return self._graph

    async def create_event(self, parsed: ParsedEvent, color_id: int | None) -> Event:
        """Insert the event; "primary" means the user's default calendar."""
        if not self.user_id:
            raise RuntimeError("CALENDAR_USER is not configured")

        event = build_calendar_event(parsed, color_id)
        user = self.graph.users.by_user_id(self.user_id)
        if self.calendar_id == DEFAULT_CALENDAR_ID:
            return await user.events.post(event)
        return await user.calendars.by_calendar_id(self.calendar_id).events.post(event)
