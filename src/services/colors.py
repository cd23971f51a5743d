"""
Label -> color slot resolution.

Rules:
- If the label matches a colors.label cell, use that row's colorId.
- Otherwise write the label into the first empty colors.label cell (lowest
  colorId) and use that row's colorId.
- Never overwrite a filled label cell.
- No empty cell left -> NoCapacity. No label -> no color.

Lookups of known labels go through the row cache without locking. Allocation
takes the global lock and re-reads the sheet directly, because another caller
may have bound the same label, or taken the empty slot, since our cached read.
"""

from functools import lru_cache
from typing import Protocol

from core.config import (
    CACHE_TTL_SECONDS,
    COLORS_SHEET_NAME,
    COLORS_WORKBOOK_PATH,
    DB_PATH,
    LOCK_TIMEOUT_SECONDS,
)
from core.errors import (
    LockTimeout,
    NoCapacity,
    Ok,
    Resolution,
    ResolutionError,
    StoreUnavailable,
)
from models.colors import ColorSlot, normalize_label
from services.color_store import WorkbookColorStore
from services.locks import SqliteLock
from services.row_cache import RowCache


class ColorStore(Protocol):
    def read_all(self) -> list[ColorSlot]: ...

    def write_label(self, slot: ColorSlot, label: str) -> None: ...


class Cache(Protocol):
    def get(self) -> list[ColorSlot] | None: ...

    def put(self, rows: list[ColorSlot], ttl: float) -> None: ...

    def invalidate(self) -> None: ...


class Lock(Protocol):
    def try_acquire(self, timeout: float) -> bool: ...

    def release(self) -> None: ...


def find_by_label(rows: list[ColorSlot], label: str) -> ColorSlot | None:
    """First row whose normalized label equals `label` (already normalized)."""
    return next((r for r in rows if normalize_label(r.label) == label), None)


def first_free_slot(rows: list[ColorSlot]) -> ColorSlot | None:
    """Empty row with the lowest colorId."""
    free = [r for r in rows if r.is_free]
    return min(free, key=lambda r: r.color_id) if free else None


class LabelResolver:
    """Resolves labels to color slots, allocating new slots under a lock."""

    def __init__(
        self,
        store: ColorStore,
        cache: Cache,
        lock: Lock,
        cache_ttl: float,
        lock_timeout: float,
    ):
        self.store = store
        self.cache = cache
        self.lock = lock
        self.cache_ttl = cache_ttl
        self.lock_timeout = lock_timeout

    def _cached_rows(self) -> list[ColorSlot]:
        rows = self.cache.get()
        if rows is None:
            rows = self.store.read_all()
            self.cache.put(rows, self.cache_ttl)
        return rows

    def resolve(self, raw_label: str | None) -> int | None:
        """
        Return the colorId bound to the label, binding a free slot if needed.

        Returns:
            colorId, or None when the label is absent or blank

        Raises:
            LockTimeout: allocation lock not acquired in time (retryable)
            StoreUnavailable: colors sheet read/write failed (retryable)
            NoCapacity: label is new and every slot is bound
            ConfigurationError: colors sheet missing or malformed
        """
        label = normalize_label(raw_label)
        if not label:
            return None

        found = find_by_label(self._cached_rows(), label)
        if found:
            return found.color_id

        return self._allocate(label)

    def _allocate(self, label: str) -> int:
        if not self.lock.try_acquire(self.lock_timeout):
            raise LockTimeout(
                f"Could not acquire colors lock within {self.lock_timeout}s for label: {label}"
            )
        try:
            self.cache.invalidate()
            rows = self.store.read_all()

            found = find_by_label(rows, label)
            if found:
                return found.color_id

            slot = first_free_slot(rows)
            if slot is None:
                raise NoCapacity(label)

            self.store.write_label(slot, label)
            self.cache.invalidate()
            return slot.color_id
        finally:
            try:
                self.lock.release()
            except StoreUnavailable as e:
                # Keep the allocation outcome; the lease expiry frees the lock row
                print(f"Warning: could not release colors lock: {e}")

    def try_resolve(self, raw_label: str | None) -> Resolution:
        """Like resolve(), but returns the failure instead of raising it."""
        try:
            return Ok(self.resolve(raw_label))
        except ResolutionError as e:
            return e


@lru_cache
def build_label_resolver() -> LabelResolver:
    """Resolver wired to the configured workbook, SQLite lock and a process-wide cache."""
    return LabelResolver(
        store=WorkbookColorStore(COLORS_WORKBOOK_PATH, COLORS_SHEET_NAME),
        cache=RowCache(),
        lock=SqliteLock(DB_PATH),
        cache_ttl=CACHE_TTL_SECONDS,
        lock_timeout=LOCK_TIMEOUT_SECONDS,
    )
