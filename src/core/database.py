"""
SQLite database setup shared by the allocation lock and request logging.
"""

import sqlite3
from pathlib import Path

from core.config import DB_PATH

LOCKS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS locks (
        name TEXT PRIMARY KEY,
        holder TEXT NOT NULL,
        acquired_at REAL NOT NULL,
        expires_at REAL NOT NULL
    )
"""

API_REQUESTS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        text_length INTEGER,
        dry_run INTEGER,
        label TEXT,
        color_id INTEGER,
        event_id TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL
    )
"""

API_REQUEST_DETAILS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS api_request_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT NOT NULL,
        detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'parse_error', 'warning')),
        message TEXT NOT NULL,
        FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
    )
"""


def get_connection(db_path: Path = DB_PATH, timeout: float = 5.0) -> sqlite3.Connection:
    """Get a database connection."""
    return sqlite3.connect(db_path, timeout=timeout)


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    cursor = conn.cursor()
    cursor.execute(LOCKS_TABLE_SQL)
    cursor.execute(API_REQUESTS_TABLE_SQL)
    cursor.execute(API_REQUEST_DETAILS_TABLE_SQL)

    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_status ON api_requests(status_code)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)"
    )
    conn.commit()


def ensure_lock_table(db_path: Path = DB_PATH) -> None:
    """Create the locks table (and its directory) if missing."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    try:
        conn.execute(LOCKS_TABLE_SQL)
        conn.commit()
    finally:
        conn.close()
