"""
Pytest configuration and shared fixtures.
"""

import sys
import threading
import time
from dataclasses import replace
from pathlib import Path

import pytest
from openpyxl import Workbook

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.errors import StoreUnavailable  # noqa: E402
from models.colors import ColorSlot  # noqa: E402


class InMemoryColorStore:
    """Colors table held in memory, with the same contract as WorkbookColorStore."""

    def __init__(self, rows: list[ColorSlot], read_delay: float = 0.0):
        self._rows = {r.color_id: r for r in rows}
        self._mutex = threading.Lock()
        self.read_delay = read_delay
        self.reads = 0
        self.writes: list[tuple[int, str]] = []
        self.fail_reads = None  # exception to raise from read_all
        self.fail_writes = None  # exception to raise from write_label

    def read_all(self) -> list[ColorSlot]:
        if self.read_delay:
            time.sleep(self.read_delay)
        with self._mutex:
            self.reads += 1
            if self.fail_reads:
                raise self.fail_reads
            return sorted(self._rows.values(), key=lambda r: r.color_id)

    def write_label(self, slot: ColorSlot, label: str) -> None:
        with self._mutex:
            if self.fail_writes:
                raise self.fail_writes
            current = self._rows[slot.color_id]
            if current.label:
                raise AssertionError(f"overwrite of slot {slot.color_id} ({current.label!r})")
            self._rows[slot.color_id] = replace(current, label=label)
            self.writes.append((slot.color_id, label))

    def label_of(self, color_id: int) -> str:
        return self._rows[color_id].label


class FakeLock:
    """Process-local lock with the try_acquire/release contract."""

    def __init__(self, available: bool = True):
        self._lock = threading.Lock()
        self.available = available
        self.acquired = 0
        self.released = 0

    def try_acquire(self, timeout: float) -> bool:
        if not self.available:
            return False
        ok = self._lock.acquire(timeout=timeout)
        if ok:
            self.acquired += 1
        return ok

    def release(self) -> None:
        self.released += 1
        self._lock.release()


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def slot(color_id: int, label: str = "", row_index: int | None = None) -> ColorSlot:
    return ColorSlot(
        color_id=color_id,
        label=label,
        background=f"#bg{color_id}",
        foreground=f"#fg{color_id}",
        row_index=row_index if row_index is not None else color_id + 1,
    )


@pytest.fixture
def make_slot():
    return slot


@pytest.fixture
def make_store():
    def _make(*rows: ColorSlot, read_delay: float = 0.0) -> InMemoryColorStore:
        return InMemoryColorStore(list(rows), read_delay=read_delay)

    return _make


@pytest.fixture
def fake_lock():
    return FakeLock()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db" / "quickcal.db"


@pytest.fixture
def write_workbook(tmp_path):
    """Write a workbook with a colors sheet from a header and rows; returns its path."""

    def _write(header, rows, sheet_name="colors", name="colors.xlsx") -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name
        ws.append(header)
        for row in rows:
            ws.append(row)
        path = tmp_path / name
        wb.save(str(path))
        return path

    return _write


@pytest.fixture
def colors_workbook(write_workbook):
    """Standard four-slot workbook, slot 2 bound to 'Acme'."""
    return write_workbook(
        ["colorId", "label", "background", "foreground"],
        [
            [1, None, "#a4bdfc", "#1d1d1d"],
            [2, "Acme", "#7ae7bf", "#1d1d1d"],
            [3, None, "#dbadff", "#1d1d1d"],
            [4, None, "#ff887c", "#1d1d1d"],
        ],
    )


@pytest.fixture
def busy_lock():
    """Lock that is never available."""
    return FakeLock(available=False)


class ReleaseFailingLock(FakeLock):
    """Acquires normally but cannot delete its lock row on release."""

    def release(self) -> None:
        super().release()
        raise StoreUnavailable("Could not release lock 'colors-allocation': disk I/O error")


@pytest.fixture
def failing_release_lock():
    return ReleaseFailingLock()
