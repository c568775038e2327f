from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..errors import SummarizationError
from ..models.report import SummaryReport
from ..models.session import SummarizeRequest
from ..services import history
from ..services.summarizer import summarize_notes
from ..state import State, get_state

router = APIRouter(tags=["summarize"])


@router.post("/summarize", response_model=SummaryReport)
def v1_summarize(payload: SummarizeRequest, request: Request, state: State = Depends(get_state)) -> SummaryReport:
    settings = request.app.state.settings
    try:
        report = summarize_notes(payload.input, payload.meeting_type, settings=settings)
    except SummarizationError as e:
        state.record_error(str(e))
        raise
    state.record_summary(report.source)
    if payload.save:
        report.session_id = history.save_session(payload.input, report, settings=settings)
        state.record_saved()
    return report
