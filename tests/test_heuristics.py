from meeting_intel.models.report import ActionItem
from meeting_intel.services import heuristics


def test_action_items_split_owner_and_deadline(sample_notes):
    items = heuristics.extract_action_items(sample_notes)
    assert len(items) == 2
    mike = items[0]
    assert mike.owner == "Mike"
    assert mike.task == "Coordinate with engineering by Friday"
    assert mike.deadline == "Friday"
    assert mike.priority == "medium"
    # "Need to ..." has no owner
    assert items[1].owner == "TBD"
    assert items[1].task.startswith("Need to update stakeholders")


def test_action_item_prefixes_and_assignment():
    text = "Action: Priya to draft the rollout plan\nTODO: clean up the backlog\nRelease notes assigned to Omar"
    items = heuristics.extract_action_items(text)
    assert [(i.owner, i.task) for i in items] == [
        ("Priya", "Draft the rollout plan"),
        ("TBD", "Clean up the backlog"),
        ("Omar", "Release notes"),
    ]


def test_action_items_are_capped():
    text = "\n".join(f"Person{i} will fix bug number {i}" for i in range(12))
    assert len(heuristics.extract_action_items(text)) == heuristics.MAX_ACTION_ITEMS


def test_key_points_need_keyword_and_length(sample_notes):
    points = heuristics.extract_key_points(sample_notes)
    assert points == ["Team discussed Q4 roadmap.", "We agreed to push launch from Dec 15 to Jan 30."]


def test_probing_questions_cover_gaps_and_cap():
    questions = heuristics.generate_probing_questions("quick sync about the thing")
    assert len(questions) == 3
    assert questions[0] == "What were the specific goals for this meeting?"


def test_probing_questions_generic_when_nothing_missing():
    text = "Goal set. Deadline fixed. Budget ok. Risk low. Stakeholder aligned."
    assert heuristics.generate_probing_questions(text) == [
        "What are the next steps after this meeting?",
        "Who will be responsible for following up?",
    ]


def test_detect_meeting_type():
    assert heuristics.detect_meeting_type("Sprint demo went well") == "sprint-review"
    assert heuristics.detect_meeting_type("Architecture decision on the queue") == "product-decision"
    assert heuristics.detect_meeting_type("Lunch plans") == "sprint-review"


def test_sop_checks_report_gaps(sample_notes):
    checks = {c.category: c for c in heuristics.check_sops(sample_notes)}
    assert checks["Meeting objective"].status == "missing"
    assert checks["Ownership"].status == "partial"
    assert checks["Deadlines"].status == "compliant"
    assert checks["Decisions recorded"].status == "compliant"
    assert checks["Risk review"].status == "compliant"


def test_risks_and_reminders(sample_notes):
    risks = heuristics.assess_risks(sample_notes)
    assert len(risks) == 1
    assert risks[0].owner == "Sarah"
    reminders = heuristics.follow_up_reminders(heuristics.extract_action_items(sample_notes))
    assert [r.due_date for r in reminders] == ["Friday", "Friday"]
    assert reminders[0].owner == "Mike"


def test_quality_scores_are_bounded(sample_notes):
    actions = heuristics.extract_action_items(sample_notes)
    quality = heuristics.score_meeting(sample_notes, actions, heuristics.check_sops(sample_notes, actions))
    assert 1 <= quality.overall_score <= 10
    for score in quality.areas.model_dump().values():
        assert 1 <= score <= 10
    assert 0 < len(quality.recommendations) <= heuristics.MAX_RECOMMENDATIONS


def test_owner_needs_a_proper_name():
    text = "Launch moved to January.\nRevenue grew to 5M this quarter.\nThe release will slip two weeks."
    items = heuristics.extract_action_items(text)
    assert items == []
    ownership = {c.category: c for c in heuristics.check_sops(text, items)}["Ownership"]
    assert ownership.status == "missing"

    items = heuristics.extract_action_items("Sarah Chen will draft the brief by Monday.")
    assert [(i.owner, i.deadline) for i in items] == [("Sarah Chen", "Monday")]


def test_key_points_are_capped():
    text = "\n".join(f"We discussed topic number {i} at length" for i in range(8))
    assert len(heuristics.extract_key_points(text)) == heuristics.MAX_KEY_POINTS


def test_risks_are_capped():
    text = " ".join(f"Risk number {i} could push the date." for i in range(6))
    assert len(heuristics.assess_risks(text)) == heuristics.MAX_RISKS


def test_reminders_are_capped():
    actions = [ActionItem(task=f"Send update {i}", owner="Ana", deadline="Friday") for i in range(5)]
    reminders = heuristics.follow_up_reminders(actions)
    assert len(reminders) == heuristics.MAX_REMINDERS
    assert {r.type for r in reminders} == {"follow-up"}


def test_recommendations_are_capped():
    text = "quick chat about lunch"
    sops = heuristics.check_sops(text, [])
    assert sum(1 for c in sops if c.status != "compliant") > heuristics.MAX_RECOMMENDATIONS
    quality = heuristics.score_meeting(text, [], sops)
    assert len(quality.recommendations) == heuristics.MAX_RECOMMENDATIONS


def test_sprint_sections_from_notes(sample_notes):
    sections = heuristics.sprint_sections(sample_notes + " Velocity was 42 points.")
    assert sections.upcoming_roadmap_items == ["Team discussed Q4 roadmap."]
    assert sections.stakeholder_updates == ["Need to update stakeholders by Friday."]
    assert [(m.name, m.value) for m in sections.sprint_metrics] == [("Velocity", "42")]


def test_decision_sections_from_notes():
    text = "We decided to use Postgres because it scales. Hiring two engineers needs budget approval."
    sections = heuristics.decision_sections(text)
    decision = sections.decisions_made[0]
    assert decision.decision == "We decided to use Postgres because it scales."
    assert decision.rationale == "It scales."
    assert sections.resource_requirements[0].type == "budget"
    assert sections.technical_considerations == ["We decided to use Postgres because it scales."]
