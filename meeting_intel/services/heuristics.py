"""Keyword and pattern heuristics over short meeting notes.

Used when no provider is configured, in demo mode, and to fill sections the
provider left empty. Every extractor is capped; nothing here tries to be a
general parser.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from ..models.report import (
    ActionItem,
    Decision,
    FollowUpReminder,
    MeetingQuality,
    ProductDecisionSections,
    QualityAreas,
    ResourceRequirement,
    RiskItem,
    SOPCheck,
    SprintMetric,
    SprintReviewSections,
)

MAX_KEY_POINTS = 5
MAX_ACTION_ITEMS = 5
MAX_QUESTIONS = 3
MAX_RISKS = 3
MAX_REMINDERS = 3
MAX_RECOMMENDATIONS = 3
MAX_SECTION_ITEMS = 3

IMPORTANT_KEYWORDS = (
    "decided", "agreed", "discussed", "reviewed", "planned", "scheduled", "completed",
    "blocked", "issue", "problem", "solution", "next", "action", "deadline", "goal", "objective",
)

SPRINT_KEYWORDS = ("sprint", "planning", "review", "progress", "update", "milestone", "deliverable", "roadmap")
DECISION_KEYWORDS = (
    "decision", "prioritization", "feature", "technical", "architecture", "strategy",
    "implementation", "rationale",
)

RISK_KEYWORDS = (
    "risk", "concern", "concerned", "blocked", "blocker", "delay", "delayed", "issue", "worried",
    "problem", "outage", "timeout", "behind", "capacity",
)

_PREFIX_ACTION_RE = re.compile(r"^(?:action(?: item)?|todo|to-do):\s*(.+)$", re.IGNORECASE)
_ASSIGNED_RE = re.compile(r"^(.+?)\s+assigned to\s+(.+)$", re.IGNORECASE)
_ARROW_RE = re.compile(r"^(.+?)\s+(?:→|->)\s+(.+)$")
_OWNER_VERB_RE = re.compile(r"^(.+?)\s+(?:to|will|should|needs? to|has to)\s+(.+)$", re.IGNORECASE)

_LOOSE_ACTION_KW = ("todo", "action", "need to", "should")

_DEADLINE_RE = re.compile(
    r"\b(?:by|before|until|due|on)\s+("
    r"(?:next\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday|week|month|sprint|meeting)"
    r"|end of (?:day|week|month|sprint|quarter)|eod|eow|tomorrow|today"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2}"
    r"|\d{4}-\d{2}-\d{2}|q[1-4](?:\s+\d{4})?"
    r")\b",
    re.IGNORECASE,
)

_OWNER_STOP = {
    "we", "i", "you", "they", "he", "she", "it", "team", "everyone", "someone", "nobody", "need", "needs",
    "the", "a", "an", "this", "that", "these", "those", "our", "my", "their", "its", "his", "her",
    "all", "each", "every", "some", "any", "no", "next", "then", "also", "please",
}
_HIGH_PRIORITY_KW = ("urgent", "asap", "critical", "blocker", "blocked", "immediately", "today")


def _sentences(text: str) -> List[str]:
    return [s.strip() for s in re.split(r"[.!?\n]+", text) if s.strip()]


def _lines(text: str) -> List[str]:
    out: List[str] = []
    for raw in text.splitlines():
        line = re.sub(r"^[-•*]\s+", "", raw.strip())
        if not line:
            continue
        # One line of pasted notes often holds several sentences
        out.extend(s.strip() for s in re.split(r"(?<=[.!?])\s+", line) if s.strip())
    return out


def ensure_sentence(text: str) -> str:
    text = text.strip()
    if not text:
        return text
    text = text[0].upper() + text[1:]
    if text[-1] not in ".!?":
        text += "."
    return text


def detect_meeting_type(text: str) -> str:
    low = text.lower()
    if any(k in low for k in SPRINT_KEYWORDS):
        return "sprint-review"
    if any(k in low for k in DECISION_KEYWORDS):
        return "product-decision"
    return "sprint-review"


def extract_key_points(text: str, limit: int = MAX_KEY_POINTS) -> List[str]:
    points: List[str] = []
    seen = set()
    for sentence in _sentences(text):
        if len(sentence) <= 20:
            continue
        low = sentence.lower()
        if not any(k in low for k in IMPORTANT_KEYWORDS):
            continue
        norm = re.sub(r"\W+", " ", low).strip()
        if norm in seen:
            continue
        seen.add(norm)
        points.append(ensure_sentence(sentence))
        if len(points) >= limit:
            break
    return points


def find_deadline(text: str) -> Optional[str]:
    m = _DEADLINE_RE.search(text)
    if not m:
        return None
    return m.group(1).strip().rstrip(".,")


def _clean_owner(owner: str) -> Optional[str]:
    """A proper-name phrase ("Mike", "Sarah Chen", "QA") or None."""
    owner = owner.strip().strip(",:;")
    words = owner.split()
    # anything longer is a clause, not an owner
    if not words or len(words) > 3:
        return None
    if any(ch in owner for ch in ",:;"):
        return None
    # "Launch moved" / "The release": every word of a name is capitalized
    if not all(w[:1].isupper() for w in words):
        return None
    if any(w.lower() in _OWNER_STOP for w in words):
        return None
    return owner


def _split_action(line: str) -> Optional[Tuple[Optional[str], str]]:
    """Return (owner, task) for a line that reads like an action item."""
    m = _PREFIX_ACTION_RE.match(line)
    if m:
        inner = _split_action(m.group(1).strip())
        return inner if inner and inner[0] else (None, m.group(1).strip())
    m = _ASSIGNED_RE.match(line)
    if m:
        return _clean_owner(m.group(2).rstrip(".")), m.group(1).strip()
    for pattern in (_ARROW_RE, _OWNER_VERB_RE):
        m = pattern.match(line)
        if m:
            owner = _clean_owner(m.group(1))
            if owner:
                return owner, m.group(2).strip()
    low = line.lower()
    if any(k in low for k in _LOOSE_ACTION_KW):
        return None, line.strip()
    return None


def extract_action_items(text: str, limit: int = MAX_ACTION_ITEMS) -> List[ActionItem]:
    items: List[ActionItem] = []
    seen = set()
    for line in _lines(text):
        split = _split_action(line)
        if split is None:
            continue
        owner, task = split
        task = task.rstrip(".").strip()
        if not task:
            continue
        key = re.sub(r"\W+", " ", task.lower()).strip()
        if key in seen:
            continue
        seen.add(key)
        low = line.lower()
        deadline = find_deadline(line)
        priority = "high" if any(k in low for k in _HIGH_PRIORITY_KW) else ("medium" if deadline else "low")
        items.append(
            ActionItem(
                task=task[:1].upper() + task[1:],
                owner=owner or "TBD",
                deadline=deadline or "TBD",
                priority=priority,
                success_criteria="Completion of task",
            )
        )
        if len(items) >= limit:
            break
    return items


def generate_probing_questions(text: str, limit: int = MAX_QUESTIONS) -> List[str]:
    low = text.lower()
    questions: List[str] = []
    if "goal" not in low and "objective" not in low:
        questions.append("What were the specific goals for this meeting?")
    if "deadline" not in low and "due date" not in low:
        questions.append("What are the deadlines for the action items?")
    if "budget" not in low and "cost" not in low:
        questions.append("Are there any budget considerations for these decisions?")
    if "risk" not in low and "concern" not in low:
        questions.append("What are the potential risks or concerns?")
    if "stakeholder" not in low and "team" not in low:
        questions.append("Who are the key stakeholders involved?")
    if not questions:
        questions.append("What are the next steps after this meeting?")
        questions.append("Who will be responsible for following up?")
    return questions[:limit]


def check_sops(text: str, actions: Optional[List[ActionItem]] = None) -> List[SOPCheck]:
    """Score the notes against a basic meeting SOP; non-compliant rows are the SOP gaps."""
    low = text.lower()
    actions = actions if actions is not None else extract_action_items(text)
    owned = [a for a in actions if a.owner != "TBD"]
    dated = [a for a in actions if a.deadline and a.deadline != "TBD"]
    checks: List[SOPCheck] = []

    if any(k in low for k in ("goal", "objective", "agenda", "purpose")):
        checks.append(SOPCheck(category="Meeting objective", status="compliant", details="Objective or agenda is stated.", severity="minor"))
    else:
        checks.append(SOPCheck(
            category="Meeting objective", status="missing", severity="important",
            details="No goal, objective or agenda is recorded.",
            recommendation="Open the notes with the meeting objective.",
        ))

    if actions and len(owned) == len(actions):
        checks.append(SOPCheck(category="Ownership", status="compliant", details="Every action item has an owner.", severity="minor"))
    elif owned:
        checks.append(SOPCheck(
            category="Ownership", status="partial", severity="important",
            details=f"{len(owned)} of {len(actions)} action items have an owner.",
            recommendation="Assign an owner to every action item.",
        ))
    else:
        checks.append(SOPCheck(
            category="Ownership", status="missing", severity="critical",
            details="No action item has a named owner.",
            recommendation="Name a person responsible for each follow-up.",
        ))

    if actions and len(dated) == len(actions):
        checks.append(SOPCheck(category="Deadlines", status="compliant", details="Every action item has a deadline.", severity="minor"))
    elif dated or "deadline" in low or "due" in low:
        checks.append(SOPCheck(
            category="Deadlines", status="partial", severity="important",
            details="Some deadlines are stated but not for every action item.",
            recommendation="Add a due date to each action item.",
        ))
    else:
        checks.append(SOPCheck(
            category="Deadlines", status="missing", severity="important",
            details="No deadlines are recorded.",
            recommendation="Agree on due dates before the meeting ends.",
        ))

    if any(k in low for k in ("decided", "agreed", "approved", "decision", "concluded")):
        checks.append(SOPCheck(category="Decisions recorded", status="compliant", details="Decisions are captured in the notes.", severity="minor"))
    else:
        checks.append(SOPCheck(
            category="Decisions recorded", status="missing", severity="important",
            details="No explicit decision is recorded.",
            recommendation="Write down what was decided and why.",
        ))

    if any(k in low for k in ("risk", "concern", "blocker", "blocked", "mitigation")):
        checks.append(SOPCheck(category="Risk review", status="compliant", details="Risks or blockers were discussed.", severity="minor"))
    else:
        checks.append(SOPCheck(
            category="Risk review", status="partial", severity="minor",
            details="Risks were not discussed explicitly.",
            recommendation="Spend a minute on risks and blockers.",
        ))
    return checks


def assess_risks(text: str, limit: int = MAX_RISKS) -> List[RiskItem]:
    risks: List[RiskItem] = []
    for sentence in _sentences(text):
        low = sentence.lower()
        hits = [k for k in RISK_KEYWORDS if re.search(rf"\b{k}s?\b", low)]
        if not hits:
            continue
        high = any(k in low for k in ("critical", "outage", "blocked", "blocker", "%"))
        owner = None
        m = re.match(r"^([A-Z][a-z]+)\s+(?:is\s+|was\s+)?(?:concerned|raised|worried|flagged)", sentence.strip())
        if m:
            owner = m.group(1)
        risks.append(
            RiskItem(
                risk=ensure_sentence(sentence),
                impact="high" if high else "medium",
                probability="medium",
                mitigation="Review in the next meeting and assign a mitigation owner.",
                owner=owner,
            )
        )
        if len(risks) >= limit:
            break
    return risks


def follow_up_reminders(actions: List[ActionItem], limit: int = MAX_REMINDERS) -> List[FollowUpReminder]:
    reminders: List[FollowUpReminder] = []
    for action in actions:
        if not action.deadline or action.deadline == "TBD":
            continue
        low = action.task.lower()
        if any(k in low for k in ("review", "check", "verify")):
            kind = "review"
        elif any(k in low for k in ("decide", "approve", "sign-off", "sign off")):
            kind = "decision"
        elif action.priority == "high":
            kind = "escalation"
        else:
            kind = "follow-up"
        reminders.append(FollowUpReminder(action=action.task, due_date=action.deadline, owner=action.owner, type=kind))
        if len(reminders) >= limit:
            break
    return reminders


def _ratio_score(part: int, whole: int, floor: int = 3) -> int:
    if whole <= 0:
        return floor
    return max(floor, round(floor + (10 - floor) * part / whole))


def score_meeting(text: str, actions: List[ActionItem], sops: List[SOPCheck]) -> MeetingQuality:
    low = text.lower()
    by_category: Dict[str, SOPCheck] = {c.category: c for c in sops}
    status_score = {"compliant": 9, "partial": 6, "missing": 3}

    owned = sum(1 for a in actions if a.owner != "TBD")
    dated = sum(1 for a in actions if a.deadline and a.deadline != "TBD")
    names = set(re.findall(r"\b[A-Z][a-z]{2,}\b", text)) - {"The", "We", "Team", "Next", "Need", "Action", "Todo"}

    areas = QualityAreas(
        preparation=status_score[by_category["Meeting objective"].status] if "Meeting objective" in by_category else 5,
        participation=min(10, 4 + 2 * len(names)),
        decision_making=status_score[by_category["Decisions recorded"].status] if "Decisions recorded" in by_category else 5,
        action_clarity=_ratio_score(owned + dated, 2 * len(actions)),
        follow_through=_ratio_score(dated, len(actions)) if actions else (6 if "next" in low else 3),
    )
    values = [areas.preparation, areas.participation, areas.decision_making, areas.action_clarity, areas.follow_through]
    overall = round(sum(values) / len(values))

    recommendations = [c.recommendation for c in sops if c.status != "compliant" and c.recommendation]
    if not recommendations:
        recommendations = ["Keep the same structure; circulate the notes within a day."]
    return MeetingQuality(
        overall_score=overall,
        areas=areas,
        recommendations=recommendations[:MAX_RECOMMENDATIONS],
    )


_METRIC_RE = re.compile(
    r"\b(velocity|story points|burndown|bugs?|tickets?|coverage|uptime)\b[^.\d]{0,20}?(\d+(?:\.\d+)?%?)",
    re.IGNORECASE,
)


def _matching(text: str, keywords: Tuple[str, ...], limit: int = MAX_SECTION_ITEMS) -> List[str]:
    out: List[str] = []
    for sentence in _sentences(text):
        low = sentence.lower()
        if any(k in low for k in keywords):
            out.append(ensure_sentence(sentence))
            if len(out) >= limit:
                break
    return out


def sprint_sections(text: str) -> SprintReviewSections:
    metrics: List[SprintMetric] = []
    for m in _METRIC_RE.finditer(text):
        metrics.append(SprintMetric(name=m.group(1).title(), value=m.group(2)))
        if len(metrics) >= MAX_SECTION_ITEMS:
            break
    return SprintReviewSections(
        deliverables_completed=_matching(text, ("completed", "shipped", "delivered", "released", "finished", "done")),
        sprint_metrics=metrics,
        blockers_resolved=_matching(text, ("resolved", "unblocked", "fixed")),
        upcoming_roadmap_items=_matching(text, ("next sprint", "roadmap", "upcoming", "next quarter", "plan to")),
        stakeholder_updates=_matching(text, ("stakeholder", "customer", "client", "leadership")),
    )


def decision_sections(text: str) -> ProductDecisionSections:
    decisions: List[Decision] = []
    for sentence in _matching(text, ("decided", "agreed", "approved", "chose", "decision")):
        m = re.search(r"\b(?:because|since|so that)\s+(.+?)[.!?]?$", sentence, re.IGNORECASE)
        decisions.append(
            Decision(
                decision=sentence,
                rationale=ensure_sentence(m.group(1)) if m else "TBD",
                deadline=find_deadline(sentence),
            )
        )
    resources: List[ResourceRequirement] = []
    for sentence in _matching(text, ("hire", "headcount", "budget", "engineer", "developer", "$", "timeline")):
        low = sentence.lower()
        if "budget" in low or "$" in low:
            kind = "budget"
        elif "timeline" in low or re.search(r"\b(?:weeks?|months?)\b", low):
            kind = "timeline"
        else:
            kind = "team"
        resources.append(ResourceRequirement(type=kind, description=sentence))
    return ProductDecisionSections(
        decisions_made=decisions,
        strategic_rationale=_matching(text, ("because", "so that", "in order to", "strategy", "strategic")),
        technical_considerations=_matching(
            text, ("architecture", "api", "database", "performance", "scal", "security", "migration", "infrastructure")
        ),
        success_criteria=_matching(text, ("success", "metric", "kpi", "measure", "target")),
        resource_requirements=resources,
    )
