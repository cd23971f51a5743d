#!/usr/bin/env python3
"""
Provision the colors workbook with one empty slot per palette color.

Usage:
    uv run python src/scripts/create_colors_sheet.py [--output data/colors.xlsx] [--force]
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from core.config import COLORS_HEADERS, COLORS_SHEET_NAME, COLORS_WORKBOOK_PATH, DEFAULT_COLOR_PALETTE


def create_colors_workbook(output: Path, palette=DEFAULT_COLOR_PALETTE) -> Path:
    """Write a workbook whose colors sheet has every slot free."""
    wb = Workbook()
    ws = wb.active
    ws.title = COLORS_SHEET_NAME

    ws.append(COLORS_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for color_id, background, foreground in palette:
        ws.append([color_id, None, background, foreground])
        # Swatch the colorId cell so operators can see the color
        swatch = ws.cell(row=ws.max_row, column=1)
        swatch.fill = PatternFill(fill_type="solid", fgColor=background.lstrip("#").upper())
        swatch.font = Font(color=foreground.lstrip("#").upper())

    ws.column_dimensions["B"].width = 30
    output.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output))
    return output


def main():
    parser = argparse.ArgumentParser(description="Create the colors workbook")
    parser.add_argument("--output", type=Path, default=COLORS_WORKBOOK_PATH)
    parser.add_argument("--force", action="store_true", help="Overwrite an existing workbook")
    args = parser.parse_args()

    if args.output.exists() and not args.force:
        print(f"Error: {args.output} already exists (labels would be lost). Use --force to overwrite.")
        sys.exit(1)

    create_colors_workbook(args.output)
    print(f"Created {args.output} with {len(DEFAULT_COLOR_PALETTE)} color slots")


if __name__ == "__main__":
    main()
