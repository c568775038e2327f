import os
import tempfile

import pytest

# The app module creates its SQLite schema at import; point it somewhere disposable first.
_IMPORT_DB_DIR = tempfile.mkdtemp(prefix="meeting-intel-")
os.environ["NOTES_DB_PATH"] = os.path.join(_IMPORT_DB_DIR, "notes.db")

PROVIDER_ENV = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "HUGGINGFACE_API_KEY",
    "HF_API_TOKEN",
    "NOTES_SUMMARY_PROVIDER",
    "NOTES_ANTHROPIC_MODEL",
    "NOTES_OPENAI_MODEL",
    "NOTES_GROQ_MODEL",
    "NOTES_HF_MODEL",
    "CLAUDE_SUMMARY_MODEL",
    "NOTES_DEMO_MODE",
    "NOTES_STORE_BACKEND",
    "NOTES_HISTORY_LIMIT",
)

SAMPLE_NOTES = (
    "Team discussed Q4 roadmap. Sarah raised concerns about timeline feasibility. "
    "We agreed to push launch from Dec 15 to Jan 30. Mike will coordinate with engineering by Friday. "
    "Need to update stakeholders by Friday."
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Fresh database and no provider keys for every test."""
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    db_file = str(tmp_path / "notes.db")
    monkeypatch.setenv("NOTES_DB_PATH", db_file)
    from meeting_intel.app import app
    from meeting_intel.db import initialize_db

    # the app loaded its settings at import
    monkeypatch.setattr(app.state.settings, "db_path", db_file)
    initialize_db()
    yield


@pytest.fixture
def sample_notes():
    return SAMPLE_NOTES
