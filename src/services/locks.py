"""
Named mutual-exclusion lock stored in SQLite.

Every process that points at the same database file shares the lock, so it
serializes threads in one server and separate workers alike. A holder's row
carries a lease expiry so a crashed process cannot block allocation forever.
"""

import sqlite3
import threading
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable

from core.config import LOCK_LEASE_SECONDS, LOCK_NAME, LOCK_POLL_INTERVAL_SECONDS
from core.database import ensure_lock_table, get_connection
from core.errors import LockTimeout, StoreUnavailable


class SqliteLock:
    """Lease lock identified by name in the `locks` table."""

    def __init__(
        self,
        db_path: Path,
        name: str = LOCK_NAME,
        lease_seconds: float = LOCK_LEASE_SECONDS,
        poll_interval: float = LOCK_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.db_path = Path(db_path)
        self.name = name
        self.lease_seconds = lease_seconds
        self.poll_interval = poll_interval
        self._clock = clock
        # Holder token per thread, so one instance can serve concurrent requests
        self._local = threading.local()
        ensure_lock_table(self.db_path)

    def _try_once(self, token: str, busy_timeout: float = 1.0) -> bool:
        """One attempt: drop an expired lease, then claim the row if free."""
        conn = get_connection(self.db_path, timeout=busy_timeout)
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            now = self._clock()
            conn.execute(
                "DELETE FROM locks WHERE name = ? AND expires_at <= ?",
                (self.name, now),
            )
            cursor = conn.execute(
                "INSERT OR IGNORE INTO locks (name, holder, acquired_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (self.name, token, now, now + self.lease_seconds),
            )
            conn.execute("COMMIT")
            return cursor.rowcount == 1
        except sqlite3.OperationalError as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            if "locked" in str(e) or "busy" in str(e):
                return False
            raise StoreUnavailable(f"Lock database unavailable: {e}") from e
        finally:
            conn.close()

    def try_acquire(self, timeout: float) -> bool:
        """
        Wait up to `timeout` seconds for the lock.

        Returns:
            True once held by the calling thread, False if the timeout passed
        """
        token = uuid.uuid4().hex
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            # Waiting on a busy database counts against the deadline too
            if self._try_once(token, busy_timeout=min(1.0, max(remaining, 0.0))):
                self._local.token = token
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            time.sleep(min(self.poll_interval, remaining))

    def release(self) -> None:
        """Release the lock if the calling thread holds it."""
        token = getattr(self._local, "token", None)
        if token is None:
            return
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "DELETE FROM locks WHERE name = ? AND holder = ?",
                (self.name, token),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not release lock '{self.name}': {e}") from e
        finally:
            conn.close()
            self._local.token = None

    @contextmanager
    def held(self, timeout: float):
        """Hold the lock for the duration of the block, or raise LockTimeout."""
        if not self.try_acquire(timeout):
            raise LockTimeout(f"Could not acquire lock '{self.name}' within {timeout}s")
        try:
            yield self
        finally:
            self.release()
