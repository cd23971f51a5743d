#!/usr/bin/env python3
"""
List color slots and the labels bound to them.

Usage:
    uv run python src/scripts/list_colors.py
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import COLORS_SHEET_NAME, COLORS_WORKBOOK_PATH
from core.errors import ResolutionError
from services.color_store import WorkbookColorStore


def main():
    store = WorkbookColorStore(COLORS_WORKBOOK_PATH, COLORS_SHEET_NAME)
    print(f"Reading {COLORS_WORKBOOK_PATH} [{COLORS_SHEET_NAME}]...\n")

    try:
        rows = store.read_all()
    except ResolutionError as e:
        print(f"Error ({e.code}): {e}")
        sys.exit(1)

    print(f"{'colorId':>7}  {'background':<10}  {'foreground':<10}  label")
    print("-" * 60)
    for row in rows:
        print(f"{row.color_id:>7}  {row.background:<10}  {row.foreground:<10}  {row.label or '(free)'}")

    free = sum(1 for row in rows if row.is_free)
    print(f"\n{len(rows)} slots, {free} free")


if __name__ == "__main__":
    main()
