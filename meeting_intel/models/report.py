from __future__ import annotations

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

Level = Literal["high", "medium", "low"]
MeetingType = Literal["sprint-review", "product-decision"]

MEETING_TYPES = ("sprint-review", "product-decision")


def _coerce_choice(value: Any, allowed: tuple, default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in allowed else default


def _clamp_score(value: Any, default: int = 5) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(1, min(10, score))


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _opt_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(x).strip() for x in value if x is not None and str(x).strip()]


class ActionItem(BaseModel):
    task: str
    owner: str = "TBD"
    deadline: Optional[str] = None
    priority: Level = "medium"
    dependencies: List[str] = Field(default_factory=list)
    success_criteria: Optional[str] = None

    @field_validator("task", mode="before")
    @classmethod
    def _task(cls, v: Any) -> str:
        return _text(v)

    @field_validator("owner", mode="before")
    @classmethod
    def _owner(cls, v: Any) -> str:
        return _text(v) or "TBD"

    @field_validator("deadline", "success_criteria", mode="before")
    @classmethod
    def _optional(cls, v: Any) -> Optional[str]:
        return _opt_text(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> str:
        return _coerce_choice(v, ("high", "medium", "low"), "medium")

    @field_validator("dependencies", mode="before")
    @classmethod
    def _deps(cls, v: Any) -> List[str]:
        return _str_list(v)


class RiskItem(BaseModel):
    risk: str
    impact: Level = "medium"
    probability: Level = "medium"
    mitigation: str = "TBD"
    owner: Optional[str] = None

    @field_validator("impact", "probability", mode="before")
    @classmethod
    def _level(cls, v: Any) -> str:
        return _coerce_choice(v, ("high", "medium", "low"), "medium")

    @field_validator("mitigation", mode="before")
    @classmethod
    def _mitigation(cls, v: Any) -> str:
        return _text(v) or "TBD"

    @field_validator("owner", mode="before")
    @classmethod
    def _owner(cls, v: Any) -> Optional[str]:
        return _opt_text(v)


class FollowUpReminder(BaseModel):
    action: str
    due_date: str = "TBD"
    owner: str = "TBD"
    type: Literal["follow-up", "escalation", "review", "decision"] = "follow-up"

    @field_validator("due_date", "owner", mode="before")
    @classmethod
    def _tbd(cls, v: Any) -> str:
        return _text(v) or "TBD"

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _coerce_choice(v, ("follow-up", "escalation", "review", "decision"), "follow-up")


class QualityAreas(BaseModel):
    preparation: int = 5
    participation: int = 5
    decision_making: int = 5
    action_clarity: int = 5
    follow_through: int = 5

    @field_validator("*", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _clamp_score(v)


class MeetingQuality(BaseModel):
    overall_score: int = 5
    areas: QualityAreas = Field(default_factory=QualityAreas)
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _clamp_score(v)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _recs(cls, v: Any) -> List[str]:
        return _str_list(v)


class SOPCheck(BaseModel):
    category: str
    status: Literal["compliant", "partial", "missing"] = "partial"
    details: str = ""
    recommendation: Optional[str] = None
    severity: Literal["critical", "important", "minor"] = "minor"

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> str:
        return _coerce_choice(v, ("compliant", "partial", "missing"), "partial")

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, v: Any) -> str:
        return _coerce_choice(v, ("critical", "important", "minor"), "minor")


class SprintMetric(BaseModel):
    name: str
    value: Union[str, float, int] = ""
    trend: Optional[Literal["up", "down", "stable"]] = None
    description: Optional[str] = None

    @field_validator("trend", mode="before")
    @classmethod
    def _trend(cls, v: Any) -> Optional[str]:
        text = _text(v).lower()
        return text if text in ("up", "down", "stable") else None


class Decision(BaseModel):
    decision: str
    rationale: str = "TBD"
    impact: Level = "medium"
    owner: Optional[str] = None
    deadline: Optional[str] = None

    @field_validator("impact", mode="before")
    @classmethod
    def _impact(cls, v: Any) -> str:
        return _coerce_choice(v, ("high", "medium", "low"), "medium")


class ResourceRequirement(BaseModel):
    type: Literal["team", "timeline", "budget", "technology"] = "team"
    description: str
    quantity: Optional[str] = None
    timeline: Optional[str] = None
    owner: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _coerce_choice(v, ("team", "timeline", "budget", "technology"), "team")

    @field_validator("quantity", "timeline", "owner", mode="before")
    @classmethod
    def _optional(cls, v: Any) -> Optional[str]:
        return _opt_text(v)


class SprintReviewSections(BaseModel):
    deliverables_completed: List[str] = Field(default_factory=list)
    sprint_metrics: List[SprintMetric] = Field(default_factory=list)
    blockers_resolved: List[str] = Field(default_factory=list)
    upcoming_roadmap_items: List[str] = Field(default_factory=list)
    stakeholder_updates: List[str] = Field(default_factory=list)

    @field_validator(
        "deliverables_completed", "blockers_resolved", "upcoming_roadmap_items", "stakeholder_updates",
        mode="before",
    )
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _str_list(v)


class ProductDecisionSections(BaseModel):
    decisions_made: List[Decision] = Field(default_factory=list)
    strategic_rationale: List[str] = Field(default_factory=list)
    technical_considerations: List[str] = Field(default_factory=list)
    success_criteria: List[str] = Field(default_factory=list)
    resource_requirements: List[ResourceRequirement] = Field(default_factory=list)

    @field_validator("strategic_rationale", "technical_considerations", "success_criteria", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _str_list(v)


class SummaryReport(BaseModel):
    meeting_type: MeetingType = "sprint-review"
    summary_points: List[str] = Field(default_factory=list)
    action_items: List[ActionItem] = Field(default_factory=list)
    open_questions: List[str] = Field(default_factory=list)
    sop_checks: List[SOPCheck] = Field(default_factory=list)
    sprint_review_sections: Optional[SprintReviewSections] = None
    product_decision_sections: Optional[ProductDecisionSections] = None
    risk_assessment: List[RiskItem] = Field(default_factory=list)
    follow_up_reminders: List[FollowUpReminder] = Field(default_factory=list)
    meeting_quality: Optional[MeetingQuality] = None
    source: Literal["llm", "heuristic", "demo"] = "heuristic"
    provider: Optional[str] = None
    model: Optional[str] = None
    session_id: Optional[str] = None

    @field_validator("summary_points", "open_questions", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _str_list(v)

    @field_validator("meeting_type", mode="before")
    @classmethod
    def _meeting_type(cls, v: Any) -> str:
        return _coerce_choice(v, MEETING_TYPES, "sprint-review")
