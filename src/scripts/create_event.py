#!/usr/bin/env python3
"""
Create a calendar event from schedule text.

Usage:
    uv run python src/scripts/create_event.py "Tomorrow 2pm Meeting #ClientA [30min] @Shibuya Office" --dry-run
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import TIME_ZONE
from core.errors import EventParseError, ResolutionError
from services.calendar import GraphCalendar
from services.colors import build_label_resolver
from services.parser import GeminiEventParser


async def run(text: str, dry_run: bool) -> None:
    parser = GeminiEventParser()
    try:
        now_iso = datetime.now(timezone.utc).isoformat()
        print(f"Parsing in {TIME_ZONE}: {text}")
        parsed = await parser.parse(text, now_iso, TIME_ZONE)
        print(json.dumps(parsed.model_dump(), indent=2, ensure_ascii=False))
    finally:
        await parser.aclose()

    color_id = build_label_resolver().resolve(parsed.label)
    print(f"Label {parsed.label!r} -> colorId {color_id}")

    if dry_run:
        print("\nDry run, no event created.")
        return

    event = await GraphCalendar().create_event(parsed, color_id)
    print(f"\nCreated event {event.id}")
    if event.web_link:
        print(f"Link: {event.web_link}")


def main():
    parser = argparse.ArgumentParser(description="Create a calendar event from schedule text")
    parser.add_argument("text", help="Free-form schedule text")
    parser.add_argument("--dry-run", action="store_true", help="Parse and resolve only")
    args = parser.parse_args()

    try:
        asyncio.run(run(args.text, args.dry_run))
    except (EventParseError, ResolutionError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
