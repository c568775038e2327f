from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from ..models.session import SaveSessionRequest, SessionItem, SessionListResponse
from ..services import history
from ..services.report import render_report_text
from ..services.summarizer import validate_notes
from ..state import State, get_state

router = APIRouter(tags=["sessions"])


def _fetch_session(meeting_id: str, request: Request) -> SessionItem:
    item = history.get_session(meeting_id, settings=request.app.state.settings)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Session {meeting_id} not found")
    return item


@router.get("/sessions", response_model=SessionListResponse)
def v1_list_sessions(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=100),
) -> SessionListResponse:
    items = history.list_sessions(limit, settings=request.app.state.settings)
    return SessionListResponse(items=items)


@router.post("/sessions")
def v1_save_session(
    payload: SaveSessionRequest,
    request: Request,
    state: State = Depends(get_state),
) -> Dict[str, Any]:
    if payload.title is not None and not payload.title.strip():
        raise HTTPException(status_code=400, detail="Invalid title")
    settings = request.app.state.settings
    validate_notes(payload.input, settings)
    meeting_id = history.save_session(payload.input, payload.report, title=payload.title, settings=settings)
    state.record_saved()
    return {"ok": True, "id": meeting_id}


@router.get("/sessions/{meeting_id}", response_model=SessionItem)
def v1_get_session(meeting_id: str, request: Request) -> SessionItem:
    return _fetch_session(meeting_id, request)


@router.delete("/sessions/{meeting_id}")
def v1_delete_session(meeting_id: str, request: Request) -> Dict[str, Any]:
    if not history.delete_session(meeting_id, settings=request.app.state.settings):
        raise HTTPException(status_code=404, detail=f"Session {meeting_id} not found")
    return {"ok": True, "id": meeting_id}


@router.get("/sessions/{meeting_id}/report.txt", response_class=PlainTextResponse)
def v1_session_report_text(meeting_id: str, request: Request) -> str:
    item = _fetch_session(meeting_id, request)
    if item.report is None:
        raise HTTPException(status_code=404, detail=f"Session {meeting_id} has no report")
    return render_report_text(item.report)
