from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

import json_repair
from pydantic import BaseModel, ValidationError

from ..models.report import (
    ActionItem,
    Decision,
    FollowUpReminder,
    MeetingQuality,
    ProductDecisionSections,
    ResourceRequirement,
    RiskItem,
    SOPCheck,
    SprintMetric,
    SprintReviewSections,
    SummaryReport,
)
from . import heuristics

logger = logging.getLogger("app.summarizer")

# Older prompt revisions used different top-level names for the same sections
_KEY_ALIASES = {
    "action_items_or_next_steps": "action_items",
    "next_steps": "action_items",
    "key_discussion_points": "summary_points",
    "summary": "summary_points",
    "probing_questions": "open_questions",
    "sop_check": "sop_checks",
    "sop_gaps": "sop_checks",
}


def _snake(key: str) -> str:
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key.strip())
    return re.sub(r"[\s\-]+", "_", key).lower()


def normalize_keys(value: Any) -> Any:
    """camelCase -> snake_case for every dict key, recursively."""
    if isinstance(value, dict):
        return {_snake(str(k)): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


def _repair(fragment: str) -> str:
    fragment = (
        fragment.replace("“", '"').replace("”", '"').replace("‘", "'").replace("’", "'")
    )
    # trailing commas before a closing bracket
    return re.sub(r",\s*([}\]])", r"\1", fragment)


def _strip_fences(s: str) -> str:
    s = s.strip()
    m = re.match(r"^```(?:json)?\s*(.*?)\s*```$", s, re.DOTALL | re.IGNORECASE)
    return m.group(1) if m else s


def try_parse_json(s: str) -> Optional[Dict[str, Any]]:
    """Attempt to extract and parse a JSON object from the model output.
    Tries whole string first, then the outermost {...} block, each with a
    light repair pass. Output cut off at the token limit or written with
    single quotes goes through json_repair from the first "{" onwards.
    """
    s = _strip_fences(s)
    candidates = [s]
    start = s.find("{")
    end = s.rfind("}")
    if start != -1 and end != -1 and end > start:
        candidates.append(s[start : end + 1])
    for cand in candidates:
        for text in (cand, _repair(cand)):
            try:
                obj = json.loads(text)
            except ValueError:
                continue
            if isinstance(obj, dict):
                return obj
    if start == -1:
        return None
    tail = re.sub(r"\s*```\s*$", "", s[start:])
    fragments = [tail]
    if end > start:
        fragments.append(s[start : end + 1])
    for fragment in fragments:
        obj = json_repair.loads(_repair(fragment))
        if isinstance(obj, list):
            # trailing prose can come back as extra top-level values
            obj = next((o for o in obj if isinstance(o, dict)), None)
        if isinstance(obj, dict) and obj:
            logger.info(f"repaired provider JSON keys={sorted(obj)[:6]}")
            return obj
    return None


def _models(items: Any, model: type, required: str) -> List[Any]:
    out: List[Any] = []
    if not isinstance(items, list):
        return out
    for item in items:
        if isinstance(item, str) and item.strip():
            item = {required: item}
        if not isinstance(item, dict) or not str(item.get(required) or "").strip():
            continue
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug(f"dropping {model.__name__} entry: {e.errors()[:1]}")
    return out


def _section(value: Any, model: type) -> Optional[BaseModel]:
    if not isinstance(value, dict):
        return None
    value = dict(value)
    if model is SprintReviewSections:
        value["sprint_metrics"] = _models(value.get("sprint_metrics"), SprintMetric, "name")
    else:
        value["decisions_made"] = _models(value.get("decisions_made"), Decision, "decision")
        value["resource_requirements"] = _models(value.get("resource_requirements"), ResourceRequirement, "description")
    try:
        return model.model_validate(value)
    except ValidationError:
        return None


def report_from_struct(data: Dict[str, Any], meeting_type: str) -> SummaryReport:
    data = normalize_keys(data)
    for old, new in _KEY_ALIASES.items():
        if old in data and not data.get(new):
            data[new] = data.pop(old)
    # summary may arrive as a JSON string of a list (stored sessions)
    points = data.get("summary_points")
    if isinstance(points, str):
        try:
            decoded = json.loads(points)
        except ValueError:
            decoded = None
        data["summary_points"] = decoded if isinstance(decoded, list) else [points]

    quality = None
    if isinstance(data.get("meeting_quality"), dict):
        try:
            quality = MeetingQuality.model_validate(data["meeting_quality"])
        except ValidationError:
            quality = None

    return SummaryReport(
        meeting_type=meeting_type,
        summary_points=data.get("summary_points") or [],
        action_items=_models(data.get("action_items"), ActionItem, "task"),
        open_questions=data.get("open_questions") or [],
        sop_checks=_models(data.get("sop_checks"), SOPCheck, "category"),
        sprint_review_sections=_section(data.get("sprint_review_sections"), SprintReviewSections)
        if meeting_type == "sprint-review"
        else None,
        product_decision_sections=_section(data.get("product_decision_sections"), ProductDecisionSections)
        if meeting_type == "product-decision"
        else None,
        risk_assessment=_models(data.get("risk_assessment"), RiskItem, "risk"),
        follow_up_reminders=_models(data.get("follow_up_reminders"), FollowUpReminder, "action"),
        meeting_quality=quality,
    )


_SECTION_HEADERS = (
    (re.compile(r"^#*\s*\**\s*(summary points|key discussion points|summary)\b", re.IGNORECASE), "summary_points"),
    (re.compile(r"^#*\s*\**\s*(action items|next steps)\b", re.IGNORECASE), "action_items"),
    (re.compile(r"^#*\s*\**\s*(open questions|probing questions)\b", re.IGNORECASE), "open_questions"),
)
_BULLET_RE = re.compile(r"^(?:[-•*]|\d+[.)])\s+")


def parse_markdown_sections(text: str) -> Dict[str, List[str]]:
    """Legacy text parsing: bullets under known headers."""
    sections: Dict[str, List[str]] = {"summary_points": [], "action_items": [], "open_questions": []}
    current = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        matched = False
        for pattern, name in _SECTION_HEADERS:
            if pattern.match(line) and not _BULLET_RE.match(line):
                current = name
                matched = True
                break
        if matched:
            continue
        if current and _BULLET_RE.match(line):
            bullet = _BULLET_RE.sub("", line).strip()
            if bullet:
                sections[current].append(bullet)
    return sections


def parse_summary(text: str, original_notes: str, meeting_type: str) -> SummaryReport:
    obj = try_parse_json(text)
    if obj is not None:
        report = report_from_struct(obj, meeting_type)
    else:
        logger.warning("provider response was not JSON; falling back to text parsing")
        sections = parse_markdown_sections(text)
        report = SummaryReport(
            meeting_type=meeting_type,
            summary_points=sections["summary_points"][: heuristics.MAX_KEY_POINTS],
            action_items=[
                ActionItem(task=b, owner="TBD", priority="medium", success_criteria="Completion of task")
                for b in sections["action_items"][: heuristics.MAX_ACTION_ITEMS]
            ],
            open_questions=sections["open_questions"][: heuristics.MAX_QUESTIONS],
        )
    return fill_gaps(report, original_notes)


def fill_gaps(report: SummaryReport, notes: str) -> SummaryReport:
    """Fill empty core lists from the heuristics over the original notes."""
    if not report.summary_points:
        report.summary_points = heuristics.extract_key_points(notes)[: heuristics.MAX_KEY_POINTS]
    if not report.action_items:
        report.action_items = heuristics.extract_action_items(notes)[: heuristics.MAX_ACTION_ITEMS]
    if not report.open_questions:
        report.open_questions = heuristics.generate_probing_questions(notes)[: heuristics.MAX_QUESTIONS]
    if not report.sop_checks:
        report.sop_checks = heuristics.check_sops(notes, report.action_items)
    return report
