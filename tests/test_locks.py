"""Tests for the SQLite allocation lock."""

import sqlite3
import threading
import time

import pytest

from core.errors import LockTimeout
from services.locks import SqliteLock


def holders(db_path):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT name, holder FROM locks").fetchall()
    finally:
        conn.close()


def test_acquire_and_release(db_path):
    lock = SqliteLock(db_path)

    assert lock.try_acquire(1.0)
    assert len(holders(db_path)) == 1

    lock.release()
    assert holders(db_path) == []


def test_creates_database_directory(db_path):
    assert not db_path.parent.exists()
    SqliteLock(db_path)
    assert db_path.exists()


def test_second_holder_times_out(db_path):
    first = SqliteLock(db_path)
    second = SqliteLock(db_path, poll_interval=0.01)
    assert first.try_acquire(1.0)

    started = time.monotonic()
    assert second.try_acquire(0.1) is False
    assert time.monotonic() - started >= 0.1

    first.release()
    assert second.try_acquire(0.1)
    second.release()


def test_zero_timeout_tries_once(db_path):
    first = SqliteLock(db_path)
    second = SqliteLock(db_path)
    assert first.try_acquire(0)
    assert second.try_acquire(0) is False
    first.release()


def test_different_names_do_not_conflict(db_path):
    a = SqliteLock(db_path, name="a")
    b = SqliteLock(db_path, name="b")

    assert a.try_acquire(0.1)
    assert b.try_acquire(0.1)
    a.release()
    b.release()


def test_release_without_holding_is_noop(db_path):
    owner = SqliteLock(db_path)
    other = SqliteLock(db_path)
    assert owner.try_acquire(0.1)

    other.release()

    assert len(holders(db_path)) == 1
    owner.release()


def test_expired_lease_is_reclaimed(db_path, clock):
    crashed = SqliteLock(db_path, lease_seconds=120, clock=clock)
    assert crashed.try_acquire(0.1)

    successor = SqliteLock(db_path, lease_seconds=120, clock=clock)
    assert successor.try_acquire(0) is False

    clock.advance(121)
    assert successor.try_acquire(0)

    # The crashed holder's late release must not free the successor's lease
    crashed.release()
    assert len(holders(db_path)) == 1
    successor.release()


def test_held_context_manager(db_path):
    lock = SqliteLock(db_path)
    other = SqliteLock(db_path)

    with lock.held(0.1):
        assert other.try_acquire(0) is False
    assert other.try_acquire(0)

    with pytest.raises(LockTimeout):
        with lock.held(0.05):
            pass
    other.release()


def test_held_releases_on_error(db_path):
    lock = SqliteLock(db_path)

    with pytest.raises(RuntimeError):
        with lock.held(0.1):
            raise RuntimeError("boom")

    assert holders(db_path) == []


def test_mutual_exclusion_across_threads(db_path):
    lock = SqliteLock(db_path, poll_interval=0.005)
    inside = 0
    max_inside = 0
    counter_lock = threading.Lock()

    def worker():
        nonlocal inside, max_inside
        for _ in range(5):
            assert lock.try_acquire(10)
            try:
                with counter_lock:
                    inside += 1
                    max_inside = max(max_inside, inside)
                time.sleep(0.002)
                with counter_lock:
                    inside -= 1
            finally:
                lock.release()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert max_inside == 1
    assert holders(db_path) == []


def test_busy_database_does_not_overrun_timeout(db_path):
    lock = SqliteLock(db_path, poll_interval=0.01)
    # Another writer keeps the database busy for the whole wait
    writer = sqlite3.connect(db_path, isolation_level=None)
    writer.execute("BEGIN IMMEDIATE")
    try:
        started = time.monotonic()
        assert lock.try_acquire(0.2) is False
        assert time.monotonic() - started < 0.8
    finally:
        writer.execute("ROLLBACK")
        writer.close()

    assert lock.try_acquire(0.2)
    lock.release()
