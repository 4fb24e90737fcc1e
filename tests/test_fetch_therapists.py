# 📦 tests/test_fetch_therapists.py

import pytest

from engine.availability import resolve_day
from tests.utils.dummies import MONDAY, make_override_row, make_template
from utils import fetch_therapists


class StubQuery:
    def __init__(self, rows, calls, failures=0):
        self.rows = rows
        self.calls = calls
        self.failures = failures

    def select(self, columns):
        self.calls.append(("select", columns))
        return self

    def order(self, column):
        self.calls.append(("order", column))
        return self

    def execute(self):
        if self.failures:
            self.failures -= 1
            raise ConnectionError("connection reset")
        return type("Response", (), {"data": self.rows})()


class StubSupabase:
    def __init__(self, rows, failures=0):
        self.calls = []
        self.query = StubQuery(rows, self.calls, failures)

    def table(self, name):
        self.calls.append(("table", name))
        return self.query


ROWS = [
    make_override_row("time_off", start_time="10:00:00", end_time="11:00:00", created_at="2025-01-01T08:00:00+00:00"),
    make_override_row("unavailable", therapist_id="t2", created_at="2025-01-02T08:00:00+00:00"),
    make_override_row("available", start_time="10:00:00", end_time="11:00:00", created_at="2025-01-03T08:00:00+00:00"),
]


@pytest.mark.asyncio
async def test_fetch_overrides_groups_rows_in_creation_order(monkeypatch):
    client = StubSupabase(ROWS)
    monkeypatch.setattr(fetch_therapists, "get_supabase", lambda: client)

    grouped = await fetch_therapists.fetch_overrides()

    assert ("table", "therapist_availability") in client.calls
    assert ("order", "created_at") in client.calls
    assert set(grouped) == {"t1", "t2"}
    assert [r["availability_type"] for r in grouped["t1"]] == ["time_off", "available"]


@pytest.mark.asyncio
async def test_fetched_rows_resolve_without_reshaping(monkeypatch):
    monkeypatch.setattr(fetch_therapists, "get_supabase", lambda: StubSupabase(ROWS))
    grouped = await fetch_therapists.fetch_overrides()

    day = resolve_day(make_template(), grouped["t1"], MONDAY)
    # time_off drops the overlapping 09-12 slot; the later AVAILABLE row reopens 10-11
    assert [(s.start, s.end) for s in day.slots] == [("10:00", "11:00")]
    assert resolve_day(make_template(), grouped["t2"], MONDAY).is_available is False


@pytest.mark.asyncio
async def test_fetch_overrides_without_client_is_empty(monkeypatch):
    monkeypatch.setattr(fetch_therapists, "get_supabase", lambda: None)
    assert await fetch_therapists.fetch_overrides() == {}
    assert await fetch_therapists.fetch_therapists() == []


@pytest.mark.asyncio
async def test_fetch_retries_then_succeeds(monkeypatch):
    monkeypatch.setattr(fetch_therapists, "get_supabase", lambda: StubSupabase(ROWS, failures=1))
    grouped = await fetch_therapists.fetch_overrides(delay=0)
    assert len(grouped["t1"]) == 2


@pytest.mark.asyncio
async def test_fetch_gives_up_after_retries(monkeypatch):
    monkeypatch.setattr(fetch_therapists, "get_supabase", lambda: StubSupabase(ROWS, failures=3))
    with pytest.raises(RuntimeError):
        await fetch_therapists.fetch_overrides(retries=2, delay=0)
