"""Tests for the schedule text parser."""

import asyncio
import json

import httpx
import pytest

from core.errors import EventParseError
from services.parser import GeminiEventParser, build_prompt, extract_json, validate_parsed

TZ = "Asia/Tokyo"


@pytest.fixture
def parsed_obj():
    return {
        "title": "Meeting",
        "location": "Shibuya Office",
        "label": "#ClientA",
        "timezone": TZ,
        "start": "2025-12-16T14:00:00+09:00",
        "end": "2025-12-16T14:30:00+09:00",
        "recurrence": None,
    }


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def run_parser(handler, api_key="test-key"):
    async def go():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        parser = GeminiEventParser(api_key=api_key, model="gemini-test", http_client=client)
        try:
            return await parser.parse("Tomorrow 2pm Meeting #ClientA [30min] @Shibuya Office", "2025-12-15T10:00:00+09:00", TZ)
        finally:
            await parser.aclose()

    return asyncio.run(go())


class TestPrompt:
    def test_prompt_carries_inputs(self):
        prompt = build_prompt("明日14時 打ち合わせ #クライアントA", "2025-12-15T10:00:00+09:00", TZ)

        assert 'timezone must be exactly: "Asia/Tokyo"' in prompt
        assert "INPUT: 明日14時 打ち合わせ #クライアントA" in prompt
        assert "CURRENT_TIME_ISO: 2025-12-15T10:00:00+09:00" in prompt
        assert '{"rrule":"FREQ=WEEKLY;BYDAY=TU"}' in prompt


class TestExtractJson:
    def test_plain_json(self, parsed_obj):
        assert extract_json(json.dumps(parsed_obj)) == parsed_obj

    def test_json_in_code_fence(self, parsed_obj):
        text = f"Here you go:\n```json\n{json.dumps(parsed_obj)}\n```"
        assert extract_json(text) == parsed_obj

    def test_not_json(self):
        with pytest.raises(EventParseError, match="not JSON"):
            extract_json("I cannot help with that")

    def test_array_rejected(self):
        with pytest.raises(EventParseError, match="JSON object"):
            extract_json("[1, 2]")


class TestValidateParsed:
    def test_valid(self, parsed_obj):
        event = validate_parsed(parsed_obj, TZ)

        assert event.title == "Meeting"
        assert event.label == "#ClientA"
        assert event.recurrence is None

    def test_recurrence(self, parsed_obj):
        parsed_obj["recurrence"] = {"rrule": "FREQ=WEEKLY;INTERVAL=2;BYDAY=SU"}

        assert validate_parsed(parsed_obj, TZ).recurrence.rrule == "FREQ=WEEKLY;INTERVAL=2;BYDAY=SU"

    @pytest.mark.parametrize("field", ["title", "location", "label", "timezone", "start", "end", "recurrence"])
    def test_missing_field(self, parsed_obj, field):
        del parsed_obj[field]

        with pytest.raises(EventParseError, match=f"Missing field: {field}"):
            validate_parsed(parsed_obj, TZ)

    def test_wrong_timezone(self, parsed_obj):
        parsed_obj["timezone"] = "UTC"

        with pytest.raises(EventParseError, match="timezone"):
            validate_parsed(parsed_obj, TZ)

    def test_blank_title(self, parsed_obj):
        parsed_obj["title"] = "  "

        with pytest.raises(EventParseError, match="title"):
            validate_parsed(parsed_obj, TZ)

    def test_start_without_offset(self, parsed_obj):
        parsed_obj["start"] = "2025-12-16T14:00:00"

        with pytest.raises(EventParseError, match="offset"):
            validate_parsed(parsed_obj, TZ)

    def test_label_must_be_string_or_null(self, parsed_obj):
        parsed_obj["label"] = 42

        with pytest.raises(EventParseError, match="label"):
            validate_parsed(parsed_obj, TZ)

    def test_recurrence_shape(self, parsed_obj):
        parsed_obj["recurrence"] = {"freq": "weekly"}

        with pytest.raises(EventParseError, match="recurrence"):
            validate_parsed(parsed_obj, TZ)


class TestGeminiEventParser:
    def test_parse(self, parsed_obj):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply(json.dumps(parsed_obj)))

        event = run_parser(handler)

        assert event.location == "Shibuya Office"
        assert "models/gemini-test:generateContent" in seen["url"]
        assert "key=test-key" in seen["url"]
        assert seen["body"]["generationConfig"] == {"temperature": 0.0}
        assert "#ClientA" in seen["body"]["contents"][0]["parts"][0]["text"]

    def test_output_split_across_parts(self, parsed_obj):
        text = json.dumps(parsed_obj)
        reply = {"candidates": [{"content": {"parts": [{"text": text[:20]}, {"text": text[20:]}]}}]}

        event = run_parser(lambda request: httpx.Response(200, json=reply))

        assert event.title == "Meeting"

    def test_http_error(self):
        with pytest.raises(EventParseError, match="HTTP 429"):
            run_parser(lambda request: httpx.Response(429, text="quota"))

    def test_empty_output(self):
        with pytest.raises(EventParseError, match="empty output"):
            run_parser(lambda request: httpx.Response(200, json={"candidates": []}))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(EventParseError, match="request failed"):
            run_parser(handler)

    def test_missing_api_key(self):
        with pytest.raises(EventParseError, match="GEMINI_API_KEY"):
            run_parser(lambda request: httpx.Response(200), api_key="")
