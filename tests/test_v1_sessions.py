from fastapi.testclient import TestClient

from meeting_intel.app import app


client = TestClient(app)

NOTES = "Sprint demo done. Ana will fix the login bug by Monday. Decided to drop the beta flag."


def _summarize():
    r = client.post("/v1/summarize", json={"input": NOTES, "meeting_type": "sprint-review"})
    assert r.status_code == 200
    return r.json()


def test_save_list_get_delete_session():
    report = _summarize()
    r = client.post("/v1/sessions", json={"title": "Sprint 12 demo", "input": NOTES, "report": report})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    sid = body["id"]

    listed = client.get("/v1/sessions")
    assert listed.status_code == 200
    items = listed.json()["items"]
    assert [(i["id"], i["title"]) for i in items] == [(sid, "Sprint 12 demo")]

    one = client.get(f"/v1/sessions/{sid}").json()
    assert one["raw_notes"] == NOTES
    assert one["report"]["summary_points"] == report["summary_points"]

    txt = client.get(f"/v1/sessions/{sid}/report.txt")
    assert txt.status_code == 200
    assert txt.headers["content-type"].startswith("text/plain")
    assert txt.text.startswith("MEETING INTELLIGENCE REPORT")

    assert client.delete(f"/v1/sessions/{sid}").json() == {"ok": True, "id": sid}
    assert client.get("/v1/sessions").json()["items"] == []


def test_save_uses_default_title():
    r = client.post("/v1/sessions", json={"input": NOTES, "report": _summarize()})
    sid = r.json()["id"]
    assert client.get(f"/v1/sessions/{sid}").json()["title"] == NOTES[:50] + "..."


def test_history_is_pruned_to_ten():
    report = _summarize()
    for i in range(11):
        client.post("/v1/sessions", json={"title": f"Meeting {i}", "input": NOTES, "report": report})
    items = client.get("/v1/sessions").json()["items"]
    assert len(items) == 10
    assert items[0]["title"] == "Meeting 10"
    assert items[-1]["title"] == "Meeting 1"


def test_list_limit():
    report = _summarize()
    for i in range(3):
        client.post("/v1/sessions", json={"title": f"Meeting {i}", "input": NOTES, "report": report})
    assert len(client.get("/v1/sessions", params={"limit": 2}).json()["items"]) == 2
    assert client.get("/v1/sessions", params={"limit": 0}).status_code == 400


def test_save_session_errors():
    report = _summarize()
    r = client.post("/v1/sessions", json={"title": "   ", "input": NOTES, "report": report})
    assert r.status_code == 400
    assert r.json() == {"ok": False, "error": "Invalid title"}

    r = client.post("/v1/sessions", json={"input": "tiny", "report": report})
    assert r.status_code == 400
    assert r.json()["error"] == "Meeting notes must be at least 10 characters long."


def test_missing_session_is_404():
    for method, path in (
        ("get", "/v1/sessions/does-not-exist"),
        ("get", "/v1/sessions/does-not-exist/report.txt"),
        ("delete", "/v1/sessions/does-not-exist"),
    ):
        r = getattr(client, method)(path)
        assert r.status_code == 404
        assert r.json() == {"ok": False, "error": "Session does-not-exist not found"}
