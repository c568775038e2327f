from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from .. import db
from ..config import Settings, load_settings
from ..errors import StoreError
from ..models.report import SummaryReport
from ..models.session import SessionItem
from . import supabase_store
from .parsing import report_from_struct

logger = logging.getLogger("app.history")

TITLE_CHARS = 50


def default_title(notes: str) -> str:
    return notes[:TITLE_CHARS] + ("..." if len(notes) > TITLE_CHARS else "")


def _call(settings: Settings, op: str, *args: Any) -> Any:
    """Run one store operation on the configured backend."""
    name = (settings.store_backend or "sqlite").strip().lower()
    if name == "supabase":
        return getattr(supabase_store, op)(*args)
    if name == "sqlite":
        return getattr(db, op)(*args, path=settings.db_path or None)
    raise StoreError(f"Unknown store backend: {settings.store_backend}")


def _output_columns(report: SummaryReport) -> Dict[str, Any]:
    data = report.model_dump(mode="json", exclude={"session_id"})
    return {
        "summary": data["summary_points"],
        "action_items": data["action_items"],
        "sop_gaps": [c for c in data["sop_checks"] if c.get("status") != "compliant"],
        "probing_questions": data["open_questions"],
        "report": data,
    }


def _to_item(row: Dict[str, Any]) -> SessionItem:
    report = None
    if isinstance(row.get("report"), dict):
        report = SummaryReport.model_validate(row["report"])
    elif row.get("summary") or row.get("action_items"):
        # rows written before the full report column existed
        report = report_from_struct(
            {
                "summary_points": row.get("summary") or [],
                "action_items": row.get("action_items") or [],
                "sop_checks": row.get("sop_gaps") or [],
                "open_questions": row.get("probing_questions") or [],
            },
            "sprint-review",
        )
    return SessionItem(
        id=str(row["id"]),
        title=row.get("title") or "",
        raw_notes=row.get("raw_notes") or "",
        created_at=row.get("created_at"),
        report=report,
    )


def save_session(
    raw_notes: str,
    report: SummaryReport,
    title: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    settings = settings or load_settings()
    title = (title or "").strip() or default_title(raw_notes)
    try:
        meeting_id = _call(settings, "insert_session", title, raw_notes, _output_columns(report))
        removed = _call(settings, "prune_sessions", settings.history_limit)
    except sqlite3.Error as e:
        raise StoreError(f"Failed to save note: {e}") from e
    logger.info(f"saved session id={meeting_id} pruned={removed}")
    return meeting_id


def list_sessions(limit: Optional[int] = None, settings: Optional[Settings] = None) -> List[SessionItem]:
    settings = settings or load_settings()
    limit = min(limit or settings.history_limit, settings.history_limit)
    try:
        rows = _call(settings, "list_sessions", limit)
    except sqlite3.Error as e:
        raise StoreError(f"Failed to load notes: {e}") from e
    return [_to_item(r) for r in rows]


def get_session(meeting_id: str, settings: Optional[Settings] = None) -> Optional[SessionItem]:
    settings = settings or load_settings()
    try:
        row = _call(settings, "get_session", meeting_id)
    except sqlite3.Error as e:
        raise StoreError(f"Failed to load note: {e}") from e
    return _to_item(row) if row else None


def delete_session(meeting_id: str, settings: Optional[Settings] = None) -> bool:
    settings = settings or load_settings()
    try:
        deleted = _call(settings, "delete_session", meeting_id)
    except sqlite3.Error as e:
        raise StoreError(f"Failed to delete note: {e}") from e
    return deleted > 0


def initialize(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    if (settings.store_backend or "sqlite").strip().lower() == "sqlite":
        db.initialize_db(settings.db_path or None)
