"""In-memory Supabase stand-in tests."""

import pytest
from postgrest.exceptions import APIError

from homehq.database.memory_client import InMemorySupabase
from homehq.database.supabase_client import maybe_row


def test_order_puts_nulls_last_when_asked():
    store = InMemorySupabase()
    store.table("tasks").insert([
        {"family_id": "f", "title": "a", "due_date": None},
        {"family_id": "f", "title": "b", "due_date": "2026-01-02T00:00:00.000Z"},
        {"family_id": "f", "title": "c", "due_date": "2026-01-01T00:00:00.000Z"},
    ]).execute()

    rows = store.table("tasks").select("title").order("due_date", desc=True).execute().data
    assert [r["title"] for r in rows] == ["a", "b", "c"]

    rows = store.table("tasks").select("title").order("due_date", desc=True, nullsfirst=False).execute().data
    assert [r["title"] for r in rows] == ["b", "c", "a"]


def test_count_ignores_range():
    store = InMemorySupabase()
    store.table("family_members").insert([{"family_id": "f", "name": str(i)} for i in range(5)]).execute()
    result = store.table("family_members").select("*", count="exact").range(0, 1).execute()
    assert len(result.data) == 2
    assert result.count == 5


def test_single_and_maybe_single():
    store = InMemorySupabase()
    assert maybe_row(store.table("families").select("*").eq("id", "x").maybe_single().execute()) is None
    with pytest.raises(APIError):
        store.table("families").select("*").eq("id", "x").single().execute()


def test_deleting_event_cascades_and_nulls():
    store = InMemorySupabase()
    event = store.table("events").insert({"family_id": "f", "title": "Trip"}).execute().data[0]
    store.table("event_participants").insert({"event_id": event["id"], "profile_id": "p"}).execute()
    store.table("tasks").insert({"family_id": "f", "title": "Pack", "event_id": event["id"]}).execute()

    store.table("events").delete().eq("id", event["id"]).execute()
    assert store.tables["event_participants"] == []
    assert store.tables["tasks"][0]["event_id"] is None


def test_family_rpc_refuses_second_family():
    store = InMemorySupabase()
    user_id, _ = store.auth.add_user("pat@example.com")
    params = {"user_id": user_id, "family_name": "A", "user_display_name": "Pat"}
    store.rpc("create_family_and_assign_admin", params).execute()
    with pytest.raises(APIError):
        store.rpc("create_family_and_assign_admin", params).execute()
