"""
Colors sheet access (Excel workbook).

The sheet must have a header row naming the columns
colorId | label | background | foreground, in any order and alongside any
extra columns. Columns are always looked up by name, never by position.
"""

import os
import tempfile
import zipfile
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from core.config import COLORS_HEADERS, COLORS_SHEET_NAME
from core.errors import ConfigurationError, StoreUnavailable
from models.colors import ColorSlot

# Failures that mean "could not talk to the file", as opposed to "file is wrong"
_IO_ERRORS = (OSError, zipfile.BadZipFile, InvalidFileException, KeyError)


def _cell_text(value) -> str:
    return "" if value is None else str(value).strip()


def _parse_color_id(value: str, row_index: int) -> int:
    try:
        number = float(value)
    except ValueError:
        number = float("nan")
    if not number.is_integer():
        raise ConfigurationError(
            f"colors row {row_index}: colorId '{value}' is not a whole number"
        )
    return int(number)


class WorkbookColorStore:
    """Reads and writes the colors sheet of an .xlsx workbook."""

    def __init__(self, workbook_path: Path, sheet_name: str = COLORS_SHEET_NAME):
        self.workbook_path = Path(workbook_path)
        self.sheet_name = sheet_name

    # -------------------------------------------------------------------------
    # Workbook helpers
    # -------------------------------------------------------------------------

    def _load(self, read_only: bool):
        if not self.workbook_path.exists():
            raise ConfigurationError(f"Colors workbook not found: {self.workbook_path}")
        try:
            return load_workbook(str(self.workbook_path), read_only=read_only, data_only=read_only)
        except _IO_ERRORS as e:
            raise StoreUnavailable(f"Could not open colors workbook: {e}") from e

    def _sheet(self, wb):
        if self.sheet_name not in wb.sheetnames:
            raise ConfigurationError(f"Sheet not found: {self.sheet_name}")
        return wb[self.sheet_name]

    def _header_index(self, header_row) -> dict[str, int]:
        """Map each required column name to its 0-based position."""
        header = [_cell_text(v) for v in header_row]
        missing = [name for name in COLORS_HEADERS if name not in header]
        if missing:
            raise ConfigurationError(
                f"{self.sheet_name} header must be: {' | '.join(COLORS_HEADERS)} "
                f"(missing: {', '.join(missing)})"
            )
        return {name: header.index(name) for name in COLORS_HEADERS}

    # -------------------------------------------------------------------------
    # Store operations
    # -------------------------------------------------------------------------

    def read_all(self) -> list[ColorSlot]:
        """
        Read every color slot, sorted by ascending colorId.

        Raises:
            ConfigurationError: sheet, required columns or data rows missing
            StoreUnavailable: workbook could not be read
        """
        wb = self._load(read_only=True)
        try:
            ws = self._sheet(wb)
            try:
                values = list(ws.iter_rows(values_only=True))
            except _IO_ERRORS as e:
                raise StoreUnavailable(f"Could not read {self.sheet_name} sheet: {e}") from e
        finally:
            wb.close()

        if len(values) < 2:
            raise ConfigurationError(f"{self.sheet_name} sheet has no data rows.")

        idx = self._header_index(values[0])

        rows = []
        for offset, row in enumerate(values[1:]):
            row_index = offset + 2

            def cell(name: str) -> str:
                i = idx[name]
                return _cell_text(row[i]) if i < len(row) else ""

            color_id_text = cell("colorId")
            if not color_id_text:
                continue
            rows.append(
                ColorSlot(
                    color_id=_parse_color_id(color_id_text, row_index),
                    label=cell("label"),
                    background=cell("background"),
                    foreground=cell("foreground"),
                    row_index=row_index,
                )
            )

        rows.sort(key=lambda r: r.color_id)
        return rows

    def write_label(self, slot: ColorSlot, label: str) -> None:
        """
        Write label into the slot's label cell.

        The label column is resolved from the header at write time. An already
        filled cell is never overwritten.

        Raises:
            ConfigurationError: sheet or label column missing
            StoreUnavailable: cell already bound, row no longer holds the slot,
                or the workbook could not be saved
        """
        wb = self._load(read_only=False)
        ws = self._sheet(wb)
        header_row = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
        idx = self._header_index(header_row)
        label_col = idx["label"] + 1

        # Rows may have been moved since the slot was read
        id_text = _cell_text(ws.cell(row=slot.row_index, column=idx["colorId"] + 1).value)
        if not id_text or _parse_color_id(id_text, slot.row_index) != slot.color_id:
            raise StoreUnavailable(
                f"colors row {slot.row_index} no longer holds colorId {slot.color_id}"
            )

        cell = ws.cell(row=slot.row_index, column=label_col)
        current = _cell_text(cell.value)
        if current:
            raise StoreUnavailable(
                f"colors row {slot.row_index} already has label '{current}', refusing to overwrite"
            )
        cell.value = label
        self._save(wb)

    def _save(self, wb) -> None:
        """Save next to the target and swap it in, so readers never see a partial file."""
        directory = self.workbook_path.parent
        fd, tmp_name = tempfile.mkstemp(suffix=".xlsx", dir=directory)
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            wb.save(str(tmp_path))
            os.replace(tmp_path, self.workbook_path)
        except OSError as e:
            raise StoreUnavailable(f"Could not save colors workbook: {e}") from e
        finally:
            tmp_path.unlink(missing_ok=True)
