import os

from fastapi.testclient import TestClient

from meeting_intel.app import app


client = TestClient(app)


def test_config_selects_provider_and_sets_key():
    r = client.post("/v1/summary_config", json={"provider": "openai", "api_key": "sk-test", "model": "gpt-4o"})
    assert r.status_code == 200
    body = r.json()
    assert body["provider"] == "openai"
    assert body["model"] == "gpt-4o"
    assert body["keys"]["openai"] is True
    assert os.environ["OPENAI_API_KEY"] == "sk-test"


def test_config_rejects_unknown_provider():
    r = client.post("/v1/summary_config", json={"provider": "cohere"})
    assert r.status_code == 400
    assert r.json() == {"ok": False, "error": "Unknown provider: cohere"}


def test_config_key_needs_provider():
    r = client.post("/v1/summary_config", json={"api_key": "sk-test"})
    assert r.status_code == 400
    assert r.json()["ok"] is False


def test_config_demo_mode_roundtrip():
    settings = app.state.settings
    previous = settings.demo_mode
    try:
        r = client.post("/v1/summary_config", json={"demo_mode": True})
        assert r.json()["demo_mode"] is True
        assert settings.demo_mode is True
    finally:
        settings.demo_mode = previous


def test_diagnostics_without_keys():
    client.post("/v1/summarize", json={"input": "Team agreed to ship the beta on Friday."})
    r = client.get("/v1/summary_diagnostics")
    assert r.status_code == 200
    body = r.json()
    assert body["provider"] == "none"
    assert body["probe_ok"] is False
    assert body["stats"]["summaries_total"] >= 1
