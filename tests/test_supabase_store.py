import itertools
import uuid
from types import SimpleNamespace

import pytest

from meeting_intel.config import Settings
from meeting_intel.errors import StoreError
from meeting_intel.services import history, summarizer, supabase_store


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.columns = ""
        self.filters = []
        self.desc = None
        self.max_rows = None

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def select(self, columns):
        self.op, self.columns = "select", columns
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        if column in ("id", "meeting_id"):
            # Postgres rejects non-uuid text for uuid columns
            uuid.UUID(str(value))
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.desc = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def execute(self):
        rows = self.client.tables[self.table]
        if self.op == "insert":
            if self.table in self.client.failing_inserts:
                raise RuntimeError(f"insert into {self.table} failed")
            row = {"id": uuid.uuid4().hex, "created_at": f"2024-01-01T00:00:{next(self.client.clock):04d}", **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[row])
        matched = [r for r in rows if all(f(r) for f in self.filters)]
        if self.op == "delete":
            self.client.tables[self.table] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=matched)
        if self.desc:
            matched = sorted(matched, key=lambda r: r[self.desc[0]], reverse=self.desc[1])
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        if "meeting_outputs" in self.columns:
            outputs = self.client.tables["meeting_outputs"]
            matched = [
                {**r, "meeting_outputs": [o for o in outputs if o["meeting_id"] == r["id"]]} for r in matched
            ]
        return SimpleNamespace(data=matched)


class FakeSupabase:
    def __init__(self):
        self.tables = {"meetings": [], "meeting_outputs": []}
        self.clock = itertools.count()
        self.failing_inserts = set()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeSupabase()
    monkeypatch.setattr(supabase_store, "_supabase_client", client)
    return client


@pytest.fixture
def settings():
    return Settings(store_backend="supabase", history_limit=3)


def test_supabase_backend_roundtrip(fake_client, settings, sample_notes):
    report = summarizer.heuristic_report(sample_notes, "sprint-review")
    meeting_id = history.save_session(sample_notes, report, title="Roadmap", settings=settings)

    item = history.get_session(meeting_id, settings=settings)
    assert item.title == "Roadmap"
    assert item.report.summary_points == report.summary_points
    # summary column is stored as JSON text
    assert isinstance(fake_client.tables["meeting_outputs"][0]["summary"], str)

    assert history.delete_session(meeting_id, settings=settings) is True
    assert fake_client.tables["meeting_outputs"] == []


def test_supabase_prunes_to_history_limit(fake_client, settings, sample_notes):
    report = summarizer.heuristic_report(sample_notes, "sprint-review")
    for i in range(5):
        history.save_session(sample_notes, report, title=f"Meeting {i}", settings=settings)
    items = history.list_sessions(settings=settings)
    assert [i.title for i in items] == ["Meeting 4", "Meeting 3", "Meeting 2"]
    assert len(fake_client.tables["meeting_outputs"]) == 3


def test_missing_credentials_raise_store_error(monkeypatch):
    for name in ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    supabase_store.reset_client()
    with pytest.raises(StoreError):
        supabase_store.get_supabase_client()


def test_non_uuid_ids_are_not_found(fake_client, settings):
    assert history.get_session("does-not-exist", settings=settings) is None
    assert history.delete_session("does-not-exist", settings=settings) is False


def test_failed_output_insert_removes_meeting(fake_client, settings, sample_notes):
    report = summarizer.heuristic_report(sample_notes, "sprint-review")
    fake_client.failing_inserts.add("meeting_outputs")
    with pytest.raises(StoreError, match="Failed to save meeting output"):
        history.save_session(sample_notes, report, settings=settings)
    assert fake_client.tables["meetings"] == []
