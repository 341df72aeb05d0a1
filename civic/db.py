"""SQLite schema and query helpers for complaints and ingestion runs."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from civic.models import ComplaintRecord, IngestionRun

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS complaints (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    display_code TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    location TEXT NOT NULL,
    urgency TEXT NOT NULL,
    department TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open',
    upvotes INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    source TEXT NOT NULL,
    source_handle TEXT NOT NULL,
    lat REAL NOT NULL,
    lng REAL NOT NULL,
    run_id INTEGER
);

CREATE TABLE IF NOT EXISTS ingestion_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    status TEXT NOT NULL DEFAULT 'running',
    posts_fetched INTEGER NOT NULL DEFAULT 0,
    scanned INTEGER NOT NULL DEFAULT 0,
    imported INTEGER NOT NULL DEFAULT 0,
    rejected INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_complaints_status ON complaints(status);
CREATE INDEX IF NOT EXISTS idx_complaints_department ON complaints(department);
"""

_COMPLAINT_COLUMNS = (
    "id", "display_code", "title", "description", "location", "urgency",
    "department", "status", "upvotes", "created_at", "source",
    "source_handle", "lat", "lng",
)


def get_connection(db_path: str) -> sqlite3.Connection:
    """Open the complaint database (WAL journal, rows addressable by column)."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str) -> None:
    """Create the complaint and run tables and record the schema version."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        conn.commit()
    finally:
        conn.close()


def _dt_str(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


# --- Complaint helpers ---


def insert_complaint(
    conn: sqlite3.Connection, record: ComplaintRecord, run_id: int | None = None,
) -> int:
    """Append a complaint, returning its sequence number."""
    placeholders = ", ".join("?" for _ in range(len(_COMPLAINT_COLUMNS) + 1))
    cur = conn.execute(
        f"INSERT INTO complaints ({', '.join(_COMPLAINT_COLUMNS)}, run_id) "
        f"VALUES ({placeholders})",
        (*(getattr(record, col) for col in _COMPLAINT_COLUMNS), run_id),
    )
    conn.commit()
    return cur.lastrowid


def get_complaints(
    conn: sqlite3.Connection, status: str | None = None, limit: int | None = None,
) -> list[ComplaintRecord]:
    """Fetch complaints in append order, optionally filtered by status."""
    sql = "SELECT * FROM complaints"
    params: list = []
    if status:
        sql += " WHERE status = ?"
        params.append(status)
    sql += " ORDER BY seq"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_complaint(row) for row in rows]


def get_complaints_by_run(conn: sqlite3.Connection, run_id: int) -> list[ComplaintRecord]:
    rows = conn.execute(
        "SELECT * FROM complaints WHERE run_id = ? ORDER BY seq", (run_id,),
    ).fetchall()
    return [_row_to_complaint(row) for row in rows]


def _row_to_complaint(row: sqlite3.Row) -> ComplaintRecord:
    return ComplaintRecord(**{col: row[col] for col in _COMPLAINT_COLUMNS})


# --- IngestionRun helpers ---


def insert_run(conn: sqlite3.Connection, run: IngestionRun) -> int:
    cur = conn.execute(
        "INSERT INTO ingestion_runs (started_at, status, posts_fetched) VALUES (?, ?, ?)",
        (_dt_str(run.started_at), run.status, run.posts_fetched),
    )
    conn.commit()
    return cur.lastrowid


def finish_run(conn: sqlite3.Connection, run_id: int, run: IngestionRun) -> None:
    conn.execute(
        """UPDATE ingestion_runs SET
           finished_at = ?, status = ?, posts_fetched = ?,
           scanned = ?, imported = ?, rejected = ?
           WHERE id = ?""",
        (
            _dt_str(run.finished_at),
            run.status,
            run.posts_fetched,
            run.scanned,
            run.imported,
            run.rejected,
            run_id,
        ),
    )
    conn.commit()


def get_recent_runs(conn: sqlite3.Connection, limit: int = 10) -> list[dict]:
    """Fetch recent ingestion runs for stats display."""
    rows = conn.execute(
        "SELECT * FROM ingestion_runs ORDER BY id DESC LIMIT ?", (limit,)
    ).fetchall()
    return [dict(row) for row in rows]
