"""Hosted history backend on Supabase (Postgres).

Mirrors the SQLite helpers in ``db.py`` over the ``meetings`` and
``meeting_outputs`` tables (see supabase-schema.sql).
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from ..errors import StoreError

logger = logging.getLogger("app.history")

_OUTPUT_COLUMNS = "summary, action_items, sop_gaps, probing_questions, report"

# Singleton client
_supabase_client = None


def get_supabase_client():
    """Return the Supabase client, creating it on first use.

    Server-side code prefers the service role key; the anon key works when
    the tables carry permissive policies.
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    supabase_url = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
    supabase_key = (
        os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        or os.environ.get("SUPABASE_KEY")
        or os.environ.get("SUPABASE_ANON_KEY")
    )
    if not supabase_url or not supabase_key:
        raise StoreError("Supabase URL or service role key is not configured on the server")

    from supabase import create_client

    _supabase_client = create_client(supabase_url, supabase_key)
    logger.info(f"connected to Supabase: {supabase_url}")
    return _supabase_client


def reset_client() -> None:
    global _supabase_client
    _supabase_client = None


def _row_to_dict(meeting: Dict[str, Any]) -> Dict[str, Any]:
    outputs = meeting.get("meeting_outputs") or []
    if isinstance(outputs, dict):
        outputs = [outputs]
    out = outputs[0] if outputs else {}
    summary = out.get("summary") or []
    if isinstance(summary, str):
        # legacy rows store the summary list as a JSON string in a TEXT column
        try:
            summary = json.loads(summary)
        except ValueError:
            summary = [summary]
    return {
        "id": str(meeting.get("id")),
        "title": meeting.get("title") or "",
        "raw_notes": meeting.get("raw_notes") or "",
        "created_at": meeting.get("created_at"),
        "summary": summary,
        "action_items": out.get("action_items") or [],
        "sop_gaps": out.get("sop_gaps") or [],
        "probing_questions": out.get("probing_questions") or [],
        "report": out.get("report"),
    }


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def insert_session(title: str, raw_notes: str, output: Dict[str, Any]) -> str:
    client = get_supabase_client()
    try:
        result = client.table("meetings").insert({"title": title, "raw_notes": raw_notes}).execute()
    except Exception as e:
        raise StoreError(f"Failed to save meeting: {e}") from e
    if not result.data:
        raise StoreError("Failed to save meeting: empty response")
    meeting_id = str(result.data[0]["id"])

    try:
        client.table("meeting_outputs").insert({
            "meeting_id": meeting_id,
            "summary": json.dumps(output.get("summary") or [], ensure_ascii=False),
            "action_items": output.get("action_items") or [],
            "sop_gaps": output.get("sop_gaps") or [],
            "probing_questions": output.get("probing_questions") or [],
            "report": output.get("report"),
        }).execute()
    except Exception as e:
        # no output row; drop the meeting so history never lists it half-saved
        try:
            client.table("meetings").delete().eq("id", meeting_id).execute()
        except Exception as cleanup:
            logger.error(f"could not remove meeting {meeting_id} after failed output insert: {cleanup}")
        raise StoreError(f"Failed to save meeting output: {e}") from e
    return meeting_id


def prune_sessions(keep: int) -> int:
    client = get_supabase_client()
    try:
        result = client.table("meetings").select("id, created_at").order("created_at", desc=True).execute()
    except Exception as e:
        # Pruning is housekeeping; a failed pass leaves extra rows for the next save
        logger.error(f"error fetching meetings for cleanup: {e}")
        return 0
    rows = result.data or []
    stale = [r["id"] for r in rows[max(0, keep):]]
    if not stale:
        return 0
    try:
        client.table("meeting_outputs").delete().in_("meeting_id", stale).execute()
        client.table("meetings").delete().in_("id", stale).execute()
    except Exception as e:
        logger.error(f"error deleting old meetings: {e}")
        return 0
    return len(stale)


def list_sessions(limit: int = 10) -> List[Dict[str, Any]]:
    client = get_supabase_client()
    try:
        result = (
            client.table("meetings")
            .select(f"id, title, raw_notes, created_at, meeting_outputs ({_OUTPUT_COLUMNS})")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        raise StoreError(f"Database error: {e}") from e
    return [_row_to_dict(r) for r in (result.data or [])]


def get_session(meeting_id: str) -> Optional[Dict[str, Any]]:
    # ids are uuid columns; anything else would fail the cast in Postgres
    if not _is_uuid(meeting_id):
        return None
    client = get_supabase_client()
    try:
        result = (
            client.table("meetings")
            .select(f"id, title, raw_notes, created_at, meeting_outputs ({_OUTPUT_COLUMNS})")
            .eq("id", meeting_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise StoreError(f"Database error: {e}") from e
    rows = result.data or []
    return _row_to_dict(rows[0]) if rows else None


def delete_session(meeting_id: str) -> int:
    if not _is_uuid(meeting_id):
        return 0
    client = get_supabase_client()
    try:
        client.table("meeting_outputs").delete().eq("meeting_id", meeting_id).execute()
        result = client.table("meetings").delete().eq("id", meeting_id).execute()
    except Exception as e:
        raise StoreError(f"Database error: {e}") from e
    return len(result.data or [])
