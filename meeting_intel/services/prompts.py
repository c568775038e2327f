from __future__ import annotations

from typing import Tuple

_SPRINT_SECTIONS = """  "sprint_review_sections": {
    "deliverables_completed": ["feature X shipped", "bug Y fixed"],
    "sprint_metrics": [
      {"name": "Velocity", "value": "23 story points", "trend": "up|down|stable", "description": "Story points completed this sprint"}
    ],
    "blockers_resolved": ["blocker 1 resolved"],
    "upcoming_roadmap_items": ["feature A planned"],
    "stakeholder_updates": ["update for executives"]
  },"""

_DECISION_SECTIONS = """  "product_decision_sections": {
    "decisions_made": [
      {"decision": "what was decided", "rationale": "why", "impact": "high|medium|low", "owner": "person responsible", "deadline": "when to implement"}
    ],
    "strategic_rationale": ["business reason"],
    "technical_considerations": ["implementation approach"],
    "success_criteria": ["metric"],
    "resource_requirements": [
      {"type": "team|timeline|budget|technology", "description": "what is needed", "quantity": "how much", "timeline": "when needed", "owner": "who manages this"}
    ]
  },"""

_COMMON_HEAD = """{
  "summary_points": ["key discussion highlight 1", "key discussion highlight 2", "key discussion highlight 3"],
  "action_items": [
    {"task": "specific actionable task", "owner": "person responsible", "deadline": "when it's due or TBD", "priority": "high|medium|low", "success_criteria": "how success will be measured"}
  ],
  "open_questions": ["specific question that needs answering"],
  "sop_checks": [
    {"category": "Ownership", "status": "compliant|partial|missing", "details": "what was observed", "recommendation": "what to change", "severity": "critical|important|minor"}
  ],
"""

_COMMON_TAIL = """  "risk_assessment": [
    {"risk": "specific risk identified", "impact": "high|medium|low", "probability": "high|medium|low", "mitigation": "specific mitigation strategy", "owner": "person responsible"}
  ],
  "follow_up_reminders": [
    {"action": "specific follow-up action", "due_date": "specific date", "owner": "person responsible", "type": "follow-up|escalation|review|decision"}
  ],
  "meeting_quality": {
    "overall_score": 8,
    "areas": {"preparation": 7, "participation": 8, "decision_making": 9, "action_clarity": 6, "follow_through": 7},
    "recommendations": ["specific improvement for the next meeting"]
  }
}"""

_RULES = """RULES:
- Summary points: 3-5 key discussion highlights, use proper sentence case, end with periods
- Action items: action items for sprint reviews, next steps for product decisions
- If information is unclear, use "TBD" instead of guessing
- Focus on what was actually discussed, not what should have been
- Use specific names from the input, not generic terms like "team" or "we"
- Scores are integers from 1 to 10
- Return JSON only, no markdown fences"""

_FOCUS = {
    "sprint-review": "- For sprint reviews: focus on deliverables, metrics, blockers, roadmap, stakeholder updates",
    "product-decision": "- For product decisions: focus on decisions, rationale, technical considerations, success criteria, resources",
}


def system_prompt(meeting_type: str) -> str:
    sections = _DECISION_SECTIONS if meeting_type == "product-decision" else _SPRINT_SECTIONS
    return (
        "You are a meeting summarizer focused on accuracy and clarity.\n\n"
        f"Respond with this EXACT JSON format for {meeting_type.upper()} meetings:\n"
        + _COMMON_HEAD
        + sections
        + "\n"
        + _COMMON_TAIL
        + "\n\n"
        + _RULES
        + "\n"
        + _FOCUS.get(meeting_type, _FOCUS["sprint-review"])
    )


def user_prompt(notes: str, meeting_type: str) -> str:
    return (
        f"{meeting_type.upper()} Meeting Notes:\n{notes}\n\n"
        f"Analyze these notes and provide {meeting_type} meeting intelligence. "
        "Clearly state what additional information is required if anything is missing."
    )


def build_prompt(notes: str, meeting_type: str) -> Tuple[str, str]:
    return system_prompt(meeting_type), user_prompt(notes, meeting_type)
