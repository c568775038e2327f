from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .report import MeetingType, SummaryReport


class SummarizeRequest(BaseModel):
    input: str = Field(..., description="Free-text meeting notes")
    meeting_type: Optional[MeetingType] = Field(
        default=None, description="sprint-review|product-decision; detected from the notes when omitted"
    )
    save: bool = Field(default=False, description="Store the session in history after summarizing")


class SaveSessionRequest(BaseModel):
    title: Optional[str] = None
    input: str
    report: SummaryReport


class SessionItem(BaseModel):
    id: str
    title: str
    raw_notes: str
    created_at: Optional[str] = Field(None, description="ISO timestamp if available")
    report: Optional[SummaryReport] = None


class SessionListResponse(BaseModel):
    ok: bool = True
    items: List[SessionItem]
