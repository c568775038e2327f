"""
db.py — SQLite helper functions for session history

This module provides:
  - Database path setup
  - Connection helper
  - Initialization of required tables
  - Save / list / get / delete for summarized sessions, pruned to the newest N
"""

import json
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def db_path(path: Optional[str] = None) -> Path:
    """Path to the SQLite file: explicit path (Settings.db_path), then NOTES_DB_PATH, then next to this module."""
    chosen = path or os.getenv("NOTES_DB_PATH")
    if chosen:
        return Path(chosen).expanduser().resolve()
    return (Path(__file__).parent / "notes.db").resolve()


def get_connection(path: Optional[str] = None) -> sqlite3.Connection:
    """
    Open a SQLite connection to our DB file with safe defaults.
    - Enables foreign keys so meeting_outputs cascade with their meeting.
    - Returns rows as tuples; we convert to dicts when needed.
    """
    resolved = db_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(resolved))
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def initialize_db(path: Optional[str] = None) -> None:
    """
    Create tables if they don't exist.
    This is idempotent and safe to call on startup.
    """
    with get_connection(path) as conn:
        cur = conn.cursor()

        # meetings: one row per summarized paste
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meetings (
                id         TEXT PRIMARY KEY,   -- uuid4 hex
                title      TEXT NOT NULL,
                raw_notes  TEXT NOT NULL,
                created_at TEXT NOT NULL       -- ISO8601 UTC
            );
            """
        )

        # meeting_outputs: structured report for a meeting
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meeting_outputs (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                meeting_id        TEXT NOT NULL,
                summary           TEXT NOT NULL,              -- JSON list of summary points
                action_items      TEXT NOT NULL DEFAULT '[]', -- JSON
                sop_gaps          TEXT NOT NULL DEFAULT '[]', -- JSON
                probing_questions TEXT NOT NULL DEFAULT '[]', -- JSON
                report            TEXT,                       -- full report JSON
                created_at        TEXT NOT NULL,
                FOREIGN KEY (meeting_id) REFERENCES meetings(id) ON DELETE CASCADE
            );
            """
        )

        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_meetings_created_at
            ON meetings(created_at DESC);
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_meeting_outputs_meeting_id
            ON meeting_outputs(meeting_id);
            """
        )

        conn.commit()


def _now_iso() -> str:
    # microseconds keep ordering stable for saves within the same second
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def insert_session(title: str, raw_notes: str, output: Dict[str, Any], path: Optional[str] = None) -> str:
    """Insert a meeting and its output row; return the new meeting id.

    `output` carries summary, action_items, sop_gaps, probing_questions and report.
    """
    meeting_id = uuid.uuid4().hex
    created = _now_iso()
    with get_connection(path) as conn:
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO meetings (id, title, raw_notes, created_at) VALUES (?, ?, ?, ?)",
            (meeting_id, title, raw_notes, created),
        )
        cur.execute(
            """
            INSERT INTO meeting_outputs (
                meeting_id, summary, action_items, sop_gaps, probing_questions, report, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                meeting_id,
                json.dumps(output.get("summary") or [], ensure_ascii=False),
                json.dumps(output.get("action_items") or [], ensure_ascii=False),
                json.dumps(output.get("sop_gaps") or [], ensure_ascii=False),
                json.dumps(output.get("probing_questions") or [], ensure_ascii=False),
                json.dumps(output.get("report"), ensure_ascii=False) if output.get("report") else None,
                created,
            ),
        )
        # Commit happens automatically when exiting the context manager
    return meeting_id


def prune_sessions(keep: int, path: Optional[str] = None) -> int:
    """Delete all but the newest `keep` meetings. Returns number of meetings deleted."""
    with get_connection(path) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id FROM meetings
            ORDER BY created_at DESC, rowid DESC
            LIMIT -1 OFFSET ?
            """,
            (max(0, keep),),
        )
        stale = [r[0] for r in cur.fetchall()]
        if not stale:
            return 0
        marks = ",".join("?" for _ in stale)
        # Delete outputs first; FK cascade covers it too but keep it explicit
        cur.execute(f"DELETE FROM meeting_outputs WHERE meeting_id IN ({marks})", stale)
        cur.execute(f"DELETE FROM meetings WHERE id IN ({marks})", stale)
        return cur.rowcount


_SESSION_SELECT = """
    SELECT m.id, m.title, m.raw_notes, m.created_at,
           o.summary, o.action_items, o.sop_gaps, o.probing_questions, o.report
    FROM meetings m
    LEFT JOIN meeting_outputs o ON o.meeting_id = m.id
"""


def _loads(raw: Optional[str], default: Any) -> Any:
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


def _row_to_dict(r: tuple) -> Dict[str, Any]:
    return {
        "id": r[0],
        "title": r[1],
        "raw_notes": r[2],
        "created_at": r[3],
        "summary": _loads(r[4], []),
        "action_items": _loads(r[5], []),
        "sop_gaps": _loads(r[6], []),
        "probing_questions": _loads(r[7], []),
        "report": _loads(r[8], None),
    }


def list_sessions(limit: int = 10, path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return recent sessions (newest first)."""
    with get_connection(path) as conn:
        cur = conn.cursor()
        cur.execute(
            _SESSION_SELECT + " ORDER BY m.created_at DESC, m.rowid DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_dict(r) for r in cur.fetchall()]


def get_session(meeting_id: str, path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    with get_connection(path) as conn:
        cur = conn.cursor()
        cur.execute(_SESSION_SELECT + " WHERE m.id = ?", (meeting_id,))
        row = cur.fetchone()
        return _row_to_dict(row) if row else None


def delete_session(meeting_id: str, path: Optional[str] = None) -> int:
    """Delete a meeting and its outputs. Returns number of meetings deleted (0 or 1)."""
    with get_connection(path) as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM meeting_outputs WHERE meeting_id = ?", (meeting_id,))
        cur.execute("DELETE FROM meetings WHERE id = ?", (meeting_id,))
        return cur.rowcount
