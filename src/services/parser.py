"""
Free-form schedule text -> ParsedEvent, via Gemini.

The model is asked for one JSON object; the reply is extracted (tolerating
prose around it) and validated before anything downstream sees it.
"""

import json
import re
from typing import Any

import httpx
from pydantic import ValidationError

from core.config import GEMINI_API_KEY, GEMINI_BASE_URL, GEMINI_MODEL, GEMINI_TIMEOUT_SECONDS
from core.errors import EventParseError
from models.events import ParsedEvent

REQUIRED_FIELDS = ["title", "location", "label", "timezone", "start", "end", "recurrence"]


def build_prompt(text: str, now_iso: str, time_zone: str) -> str:
    """Prompt describing the marker grammar and the exact JSON shape expected."""
    return f"""You are a multilingual parser that converts free-form schedule text into ONE calendar event object.
The input may be Japanese, English, or other languages.

Return ONLY a JSON object with EXACT fields:
title, location, label, timezone, start, end, recurrence

Constraints:
- timezone must be exactly: "{time_zone}" (IANA timezone string)
- start/end must be ISO 8601 with timezone OFFSET, e.g. "2025-12-15T15:00:00+09:00"

Extraction markers (language-agnostic):
- "#<label>" assigns label. Take text after "#" until whitespace/end. If missing, label=null.
- "@<place>" or "＠<place>" assigns location. Take text after @ until end (trim). If missing, location=null.
- Duration may be given in brackets: [30分], [1時間], [30m], [30min], [1h], [1 hour].
  If duration is missing, default duration = 60 minutes.

Title rules:
- Remove date/time tokens, recurrence tokens, duration brackets, #label and @location from the title.
- The remaining text is the title. If empty, title="Event".

Date/time interpretation:
- Interpret dates/times in timezone "{time_zone}", using CURRENT_TIME_ISO as "now".
- Relative days: 今日/today, 明日/tomorrow, 明後日/the day after tomorrow.
- A weekday without a date means its NEXT occurrence after now; today is allowed if the time is still ahead.
- If time is missing, assume 09:00.
- Times: 15時 => 15:00, 午後3時 => 15:00, 3pm => 15:00, 3:30 PM => 15:30.

Recurrence:
- "毎週火曜日", "every Tuesday", "weekly on Tuesday" => recurrence={{"rrule":"FREQ=WEEKLY;BYDAY=TU"}}
- "隔週日曜日", "every other Sunday", "biweekly on Sunday" => recurrence={{"rrule":"FREQ=WEEKLY;INTERVAL=2;BYDAY=SU"}}
- Otherwise recurrence=null.
- Japanese weekdays: 月=MO 火=TU 水=WE 木=TH 金=FR 土=SA 日=SU

If date/time cannot be confidently parsed, use today 09:00 if still in the future, else tomorrow 09:00 (in "{time_zone}").

INPUT: {text}
CURRENT_TIME_ISO: {now_iso}

Return only the JSON object."""


def extract_json(text: str) -> dict[str, Any]:
    """Parse model output as JSON, falling back to the outermost {...} block."""
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        m = re.search(r"\{.*\}", text, re.S)
        if not m:
            raise EventParseError(f"Model output is not JSON: {text}")
        try:
            obj = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise EventParseError(f"Model output is not JSON: {e}")
    if not isinstance(obj, dict):
        raise EventParseError("Model output must be a JSON object")
    return obj


def validate_parsed(obj: dict[str, Any], time_zone: str) -> ParsedEvent:
    """Check the model's object field by field and build a ParsedEvent."""
    for key in REQUIRED_FIELDS:
        if key not in obj:
            raise EventParseError(f"Missing field: {key}")

    if obj["timezone"] != time_zone:
        raise EventParseError(f'timezone must be exactly "{time_zone}"')

    try:
        return ParsedEvent.model_validate(obj)
    except ValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise EventParseError(messages)


def _output_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


class GeminiEventParser:
    """Calls Gemini generateContent and returns a validated ParsedEvent."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self._http_client = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=GEMINI_TIMEOUT_SECONDS)
        return self._http_client

    async def parse(self, text: str, now_iso: str, time_zone: str) -> ParsedEvent:
        """
        Parse schedule text into an event.

        Raises:
            EventParseError: API failure, empty or invalid model output
        """
        if not self.api_key:
            raise EventParseError("GEMINI_API_KEY is not configured")

        url = f"{GEMINI_BASE_URL}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": build_prompt(text, now_iso, time_zone)}]}],
            "generationConfig": {"temperature": 0.0},
        }

        try:
            response = await self._client().post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise EventParseError(f"Gemini request failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise EventParseError(f"Gemini API error: HTTP {response.status_code} {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise EventParseError("Gemini returned invalid JSON") from e
        if not isinstance(data, dict):
            raise EventParseError("Gemini returned an unexpected response shape")

        out_text = _output_text(data)
        if not out_text:
            raise EventParseError("Gemini returned empty output.")

        return validate_parsed(extract_json(out_text), time_zone)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
