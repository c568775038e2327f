from __future__ import annotations

import logging
import re
from typing import Optional

from ..config import Settings, load_settings
from ..errors import InputValidationError, SummarizationError
from ..models.report import SummaryReport
from . import heuristics, llm, parsing, prompts

logger = logging.getLogger("app.summarizer")


def validate_notes(text: Optional[str], settings: Optional[Settings] = None) -> str:
    settings = settings or load_settings()
    if text is None or not isinstance(text, str):
        raise InputValidationError("Invalid input. Please provide meeting notes as a string.")
    if not text.strip():
        raise InputValidationError("Please enter some meeting notes")
    if len(text.strip()) < settings.min_input_chars:
        raise InputValidationError(f"Meeting notes must be at least {settings.min_input_chars} characters long.")
    if len(text) > settings.max_input_chars:
        raise InputValidationError(f"Meeting notes cannot exceed {settings.max_input_chars} characters.")
    return text


def readable_error(message: str) -> str:
    if re.search(r"credit balance", message, re.IGNORECASE):
        return "Provider account balance is low. Please add credits and try again."
    if re.search(r"api[ _-]?key", message, re.IGNORECASE):
        return "Provider API key is invalid or missing. Verify your credentials."
    return message or "Unable to generate a summary at this time. Please try again later."


def heuristic_report(text: str, meeting_type: str, source: str = "heuristic") -> SummaryReport:
    actions = heuristics.extract_action_items(text)
    sops = heuristics.check_sops(text, actions)
    report = SummaryReport(
        meeting_type=meeting_type,
        summary_points=heuristics.extract_key_points(text),
        action_items=actions,
        open_questions=heuristics.generate_probing_questions(text),
        sop_checks=sops,
        risk_assessment=heuristics.assess_risks(text),
        follow_up_reminders=heuristics.follow_up_reminders(actions),
        meeting_quality=heuristics.score_meeting(text, actions, sops),
        source=source,  # type: ignore[arg-type]
    )
    _add_type_sections(report, text)
    if not report.summary_points:
        # Short notes rarely contain an importance keyword; keep the first sentences instead
        report.summary_points = [
            heuristics.ensure_sentence(s) for s in re.split(r"[.!?\n]+", text) if len(s.strip()) > 10
        ][: heuristics.MAX_KEY_POINTS]
    return report


def _add_type_sections(report: SummaryReport, text: str) -> None:
    if report.meeting_type == "sprint-review" and report.sprint_review_sections is None:
        report.sprint_review_sections = heuristics.sprint_sections(text)
    elif report.meeting_type == "product-decision" and report.product_decision_sections is None:
        report.product_decision_sections = heuristics.decision_sections(text)


def _complete_heuristic_sections(report: SummaryReport, text: str) -> SummaryReport:
    """Provider answered but left optional sections out; derive them from the notes."""
    if not report.risk_assessment:
        report.risk_assessment = heuristics.assess_risks(text)
    if not report.follow_up_reminders:
        report.follow_up_reminders = heuristics.follow_up_reminders(report.action_items)
    if report.meeting_quality is None:
        report.meeting_quality = heuristics.score_meeting(text, report.action_items, report.sop_checks)
    _add_type_sections(report, text)
    return report


def summarize_notes(
    text: str,
    meeting_type: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> SummaryReport:
    settings = settings or load_settings()
    text = validate_notes(text, settings)
    meeting_type = meeting_type or heuristics.detect_meeting_type(text)

    if settings.demo_mode:
        logger.info("demo mode enabled; using heuristic report")
        return heuristic_report(text, meeting_type, source="demo")
    if not llm.is_configured():
        logger.warning("no summarization provider key set; using heuristic report")
        return heuristic_report(text, meeting_type, source="heuristic")

    system, user = prompts.build_prompt(text, meeting_type)
    if llm.provider_and_model()[0] == "huggingface":
        # summarization models take the raw notes, not instructions
        user = text
    try:
        content, provider, model = llm.complete(
            system, user, max_tokens=800, temperature=0.1, timeout=settings.request_timeout_s
        )
    except llm.ProviderError as e:
        logger.error(f"summarization failed: {e}")
        raise SummarizationError(readable_error(str(e))) from e

    if provider == "huggingface":
        # Plain summary text; everything structured comes from the notes
        report = heuristic_report(text, meeting_type, source="llm")
        points = [heuristics.ensure_sentence(s) for s in re.split(r"(?<=[.!?])\s+", content) if s.strip()]
        report.summary_points = points[: heuristics.MAX_KEY_POINTS] or report.summary_points
    else:
        report = parsing.parse_summary(content, text, meeting_type)
        report = _complete_heuristic_sections(report, text)
        report.source = "llm"
    report.provider = provider
    report.model = model
    logger.info(
        f"summarized notes chars={len(text)} type={meeting_type} provider={provider} "
        f"points={len(report.summary_points)} actions={len(report.action_items)}"
    )
    return report
