from __future__ import annotations

import re
from typing import List

from ..models.report import SummaryReport


def _title_case(value: str) -> str:
    spaced = re.sub(r"[_\-]+", " ", value)
    spaced = re.sub(r"(?<=[a-z])([A-Z])", r" \1", spaced)
    return " ".join(w[:1].upper() + w[1:] for w in spaced.split())


def render_report_text(report: SummaryReport) -> str:
    """Plain-text report, the same text the UI copies to the clipboard."""
    lines: List[str] = ["MEETING INTELLIGENCE REPORT"]
    lines.append(f"Meeting Type: {_title_case(report.meeting_type)}")
    if report.meeting_quality:
        lines.append(f"Overall Quality Score: {report.meeting_quality.overall_score}/10")

    def add_section(title: str, entries: List[str]) -> None:
        lines.append("")
        lines.append(f"{title}:")
        if entries:
            lines.extend(entries)
        else:
            lines.append("- None")

    add_section("KEY DISCUSSION POINTS", [f"- {p}" for p in report.summary_points])

    steps: List[str] = []
    for item in report.action_items:
        details = [
            f"Owner: {item.owner}",
            f"Deadline: {item.deadline or 'TBD'}",
            f"Priority: {item.priority.upper()}",
        ]
        if item.success_criteria:
            details.append(f"Success Criteria: {item.success_criteria}")
        if item.dependencies:
            details.append(f"Dependencies: {', '.join(item.dependencies)}")
        steps.append(f"- {item.task}\n  {' | '.join(details)}")
    add_section("NEXT STEPS", steps)

    sops: List[str] = []
    for check in report.sop_checks:
        details = [
            f"Status: {check.status.upper()}",
            f"Severity: {check.severity.upper()}",
            f"Details: {check.details}",
        ]
        if check.recommendation:
            details.append(f"Recommendation: {check.recommendation}")
        sops.append(f"- {check.category}\n  {' | '.join(details)}")
    add_section("SOP CHECKS", sops)

    add_section("OPEN QUESTIONS", [f"- {q}" for q in report.open_questions])

    risks: List[str] = []
    for risk in report.risk_assessment:
        details = [
            f"Impact: {risk.impact.upper()}",
            f"Probability: {risk.probability.upper()}",
            f"Mitigation: {risk.mitigation}",
        ]
        if risk.owner:
            details.append(f"Owner: {risk.owner}")
        risks.append(f"- {risk.risk}\n  {' | '.join(details)}")
    add_section("RISK ASSESSMENT", risks)

    add_section(
        "FOLLOW-UP REMINDERS",
        [
            f"- {r.action}\n  Type: {r.type.upper()} | Due: {r.due_date} | Owner: {r.owner}"
            for r in report.follow_up_reminders
        ],
    )

    if report.meeting_quality:
        areas = report.meeting_quality.areas.model_dump()
        add_section("MEETING QUALITY SCORES", [f"- {_title_case(k)}: {v}/10" for k, v in areas.items()])
        add_section(
            "MEETING QUALITY RECOMMENDATIONS",
            [f"- {rec}" for rec in report.meeting_quality.recommendations],
        )

    return "\n".join(lines).strip() + "\n"
