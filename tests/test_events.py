"""Event handler and endpoint tests."""

import uuid

import pytest
from httpx import AsyncClient

from homehq.modules.events import actions
from homehq.modules.family_members import actions as member_actions
from tests.conftest import auth_headers, join_family, new_user


def _event(**overrides) -> dict:
    payload = {
        "title": "Team dinner",
        "start_time": "2026-05-01T18:00:00.000Z",
        "end_time": "2026-05-01T20:00:00.000Z",
        "is_private": False,
    }
    payload.update(overrides)
    return payload


def _create(store, user, **overrides):
    result = actions.create_event(store, user.token, _event(**overrides))
    assert result.is_ok, result
    return result.data


def _participants(event):
    return (
        {p.profile_id for p in event.participants if p.profile_id},
        {p.member_id for p in event.participants if p.member_id},
    )


# Create

@pytest.mark.asyncio
async def test_create_event_with_participants_and_suggestions(client: AsyncClient, store, family):
    sam = join_family(store, family.family_id, name="Sam")
    robin = member_actions.create_family_member(store, family.token, {"name": "Robin"}).data

    response = await client.post("/api/v1/events", json=_event(
        title="Robin's Birthday Dinner",
        participant_ids=[family.id, sam.id],
        member_ids=[robin.id],
        accept_suggestions=["birthday"],
    ), headers=auth_headers(family.token))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["event"]["created_by_name"] == "Alex"
    assert {p["profile_id"] for p in data["event"]["participants"] if p["profile_id"]} == {family.id, sam.id}
    assert [p["member"]["name"] for p in data["event"]["participants"] if p["member_id"]] == ["Robin"]
    assert [(s["suggestion_id"], s["accepted"]) for s in data["suggestions"]] == [
        ("birthday", True),
        ("outing", False),
        ("birthday_invitations", False),
        ("birthday_cake", False),
        ("birthday_gifts", False),
        ("date_night_reservation", False),
    ]
    assert len(data["created_tasks"]) == 1
    task = data["created_tasks"][0]
    assert task["title"] == "Buy a gift"
    assert task["event_id"] == data["event"]["id"]
    assert task["created_from_suggestion"] is True
    assert task["due_date"] == "2026-05-08T18:00:00.000Z"


def test_accepted_suggestion_tasks_follow_event_privacy(store, family):
    created = _create(store, family, title="Dentist", is_private=True, accept_suggestions=["health"])
    assert created.created_tasks[0].is_private is True


def test_accepting_a_template_suggestion(store, family):
    created = _create(store, family, title="Robin's birthday", accept_suggestions=["birthday_cake"])
    assert [t.suggestion_id for t in created.created_tasks] == ["birthday_cake"]
    task = created.created_tasks[0]
    assert task.title == "Zamówić tort / Order cake"
    assert task.due_date == "2026-04-24T18:00:00.000Z"


def test_babysitter_suggested_when_a_child_stays_home(store, family):
    robin = member_actions.create_family_member(store, family.token, {"name": "Robin"}).data

    alone = _create(store, family, title="Cinema", participant_ids=[family.id])
    assert "date_night_babysitter" in [s.suggestion_id for s in alone.suggestions]

    with_child = _create(store, family, title="Cinema", participant_ids=[family.id], member_ids=[robin.id])
    assert "date_night_babysitter" not in [s.suggestion_id for s in with_child.suggestions]


def test_suggestions_that_were_not_produced_are_not_created(store, family):
    created = _create(store, family, title="Dentist", accept_suggestions=["christmas_gifts", "health"])
    assert [t.suggestion_id for t in created.created_tasks] == ["health"]


def test_create_event_ignores_client_ownership_fields(store, family, other_family):
    created = _create(store, family, family_id=other_family.family_id, created_by=other_family.id)
    assert created.event.family_id == family.family_id
    assert created.event.created_by == family.id


def test_create_event_with_participant_from_other_family(store, family, other_family):
    result = actions.create_event(store, family.token, _event(participant_ids=[other_family.id]))
    assert result.error.code == "FORBIDDEN"
    assert result.error.message == "Cannot add participants from other families"
    assert store.tables.get("events", []) == []


def test_create_event_with_member_from_other_family(store, family, other_family):
    outsider = member_actions.create_family_member(store, other_family.token, {"name": "Kid"}).data
    result = actions.create_event(store, family.token, _event(member_ids=[outsider.id]))
    assert result.error.code == "FORBIDDEN"
    assert result.error.message == "All participants must belong to your family"


def test_private_event_with_many_participants(store, family):
    sam = join_family(store, family.family_id)
    result = actions.create_event(store, family.token, _event(is_private=True, participant_ids=[family.id, sam.id]))
    assert result.error.code == "INVALID_PRIVATE_EVENT"

    # Reported first even when other fields are invalid too
    result = actions.create_event(store, family.token, {"is_private": True, "participant_ids": [family.id, sam.id]})
    assert result.error.code == "INVALID_PRIVATE_EVENT"


def test_create_event_invalid_input(store, family):
    result = actions.create_event(store, family.token, _event(end_time="2026-05-01T17:00:00.000Z"))
    assert result.error.code == "INVALID_INPUT"
    assert result.error.details["field"] == "end_time"


def test_create_event_requires_family(store):
    assert actions.create_event(store, None, _event()).error.code == "UNAUTHORIZED"
    user = new_user(store)
    assert actions.create_event(store, user.token, _event()).error.code == "FORBIDDEN"


def test_create_event_rolls_back_when_tasks_fail(store, family, monkeypatch):
    insert_rows = store.insert_rows

    def failing_insert(table, payload):
        if table == "tasks":
            raise RuntimeError("tasks table unavailable")
        return insert_rows(table, payload)

    monkeypatch.setattr(store, "insert_rows", failing_insert)
    result = actions.create_event(store, family.token, _event(
        title="Birthday", participant_ids=[family.id], accept_suggestions=["birthday"],
    ))

    assert result.error.code == "INTERNAL_ERROR"
    assert result.error.message == "Failed to create event. Please try again."
    assert store.tables["events"] == []
    assert store.tables["event_participants"] == []


# Read

@pytest.mark.asyncio
async def test_list_events_visibility_and_pagination(client: AsyncClient, store, family):
    sam = join_family(store, family.family_id, name="Sam")
    shared = _create(store, family, title="Picnic", start_time="2026-05-01T10:00:00.000Z",
                     end_time="2026-05-01T12:00:00.000Z", participant_ids=[sam.id]).event
    _create(store, family, title="Therapy", is_private=True,
            start_time="2026-05-02T10:00:00.000Z", end_time="2026-05-02T11:00:00.000Z")
    _create(store, sam, title="Football", start_time="2026-05-03T10:00:00.000Z", end_time="2026-05-03T11:00:00.000Z")

    response = await client.get("/api/v1/events", headers=auth_headers(sam.token))
    assert [e["title"] for e in response.json()["data"]["events"]] == ["Picnic", "Football"]

    response = await client.get("/api/v1/events", params={"limit": "1"}, headers=auth_headers(family.token))
    data = response.json()["data"]
    assert [e["title"] for e in data["events"]] == ["Picnic"]
    assert data["pagination"] == {"total": 3, "limit": 1, "offset": 0, "has_more": True}

    response = await client.get("/api/v1/events", params={"participant_id": sam.id},
                                headers=auth_headers(family.token))
    assert [e["id"] for e in response.json()["data"]["events"]] == [shared.id]

    response = await client.get("/api/v1/events", params={"start_date": "2026-05-02T00:00:00.000Z"},
                                headers=auth_headers(family.token))
    assert [e["title"] for e in response.json()["data"]["events"]] == ["Therapy", "Football"]

    actions.delete_event(store, family.token, shared.id)
    response = await client.get("/api/v1/events", headers=auth_headers(family.token))
    assert response.json()["data"]["pagination"]["total"] == 2


def test_list_events_unknown_participant(store, family):
    _create(store, family)
    result = actions.list_events(store, family.token, {"participant_id": str(uuid.uuid4())})
    assert result.data.events == []
    assert result.data.pagination.total == 0


@pytest.mark.asyncio
async def test_list_events_invalid_query(client: AsyncClient, family):
    response = await client.get("/api/v1/events", params={"limit": "1000"}, headers=auth_headers(family.token))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_QUERY_PARAMS"


@pytest.mark.asyncio
async def test_get_event_invalid_id(client: AsyncClient, family):
    response = await client.get("/api/v1/events/not-a-uuid", headers=auth_headers(family.token))
    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "INVALID_EVENT_ID",
        "message": "Event ID must be a valid UUID",
        "details": {"eventId": "not-a-uuid"},
    }


def test_get_event_hidden_cases(store, family, other_family):
    sam = join_family(store, family.family_id)
    private = _create(store, family, is_private=True).event
    foreign = _create(store, other_family).event

    assert actions.get_event(store, family.token, private.id).data.id == private.id
    assert actions.get_event(store, sam.token, private.id).error.code == "EVENT_NOT_FOUND"
    assert actions.get_event(store, family.token, foreign.id).error.code == "EVENT_NOT_FOUND"


# Update

def test_only_creator_updates(store, family):
    sam = join_family(store, family.family_id)
    event = _create(store, family).event
    result = actions.update_event(store, sam.token, event.id, {"title": "Mine"})
    assert result.error.code == "FORBIDDEN"


def test_update_event_fields(store, family):
    event = _create(store, family, description="Bring salad").event
    result = actions.update_event(store, family.token, event.id, {"title": "Family dinner", "description": None})
    assert result.data.title == "Family dinner"
    assert result.data.description is None
    assert result.data.updated_at is not None


def test_update_single_bound_checked_against_stored_value(store, family):
    event = _create(store, family).event
    result = actions.update_event(store, family.token, event.id, {"end_time": "2026-05-01T17:00:00.000Z"})
    assert result.error.code == "INVALID_TIME_RANGE"

    result = actions.update_event(store, family.token, event.id, {"end_time": "2026-05-01T21:00:00.000Z"})
    assert result.data.end_time == "2026-05-01T21:00:00.000Z"


def test_update_participants_outside_family(store, family, other_family):
    event = _create(store, family).event
    result = actions.update_event(store, family.token, event.id, {"participant_ids": [other_family.id]})
    assert result.error.code == "INVALID_PARTICIPANTS"
    assert result.error.details == {"invalid_participant_ids": [other_family.id]}


def test_update_replaces_profile_participants(store, family):
    sam = join_family(store, family.family_id)
    robin = member_actions.create_family_member(store, family.token, {"name": "Robin"}).data
    event = _create(store, family, participant_ids=[family.id], member_ids=[robin.id]).event

    result = actions.update_event(store, family.token, event.id, {"participant_ids": [sam.id]})
    assert _participants(result.data) == ({sam.id}, {robin.id})


def test_making_event_private_clears_participants(store, family):
    sam = join_family(store, family.family_id)
    event = _create(store, family, participant_ids=[family.id, sam.id]).event

    result = actions.update_event(store, family.token, event.id, {"is_private": True})
    assert result.data.is_private is True
    assert result.data.participants == []


def test_update_archived_event(store, family):
    event = _create(store, family).event
    actions.delete_event(store, family.token, event.id)
    result = actions.update_event(store, family.token, event.id, {"title": "Back"})
    assert result.error.code == "EVENT_NOT_FOUND"


# Delete

@pytest.mark.asyncio
async def test_delete_event_keeps_tasks(client: AsyncClient, store, family):
    created = _create(store, family, title="Birthday", accept_suggestions=["birthday"])
    event_id = created.event.id

    response = await client.delete(f"/api/v1/events/{event_id}", headers=auth_headers(family.token))
    assert response.status_code == 200
    assert response.json()["data"]["id"] == event_id
    assert response.json()["data"]["archived_at"]

    task = store.tables["tasks"][0]
    assert task["event_id"] is None
    assert task["archived_at"] is None


@pytest.mark.asyncio
async def test_deleting_archived_and_missing_events_look_the_same(client: AsyncClient, store, family):
    event_id = _create(store, family).event.id
    headers = auth_headers(family.token)
    await client.delete(f"/api/v1/events/{event_id}", headers=headers)

    archived = await client.delete(f"/api/v1/events/{event_id}", headers=headers)
    missing = await client.delete(f"/api/v1/events/{uuid.uuid4()}", headers=headers)
    assert archived.status_code == missing.status_code == 404
    assert archived.json() == missing.json()
    assert archived.json()["error"]["code"] == "EVENT_NOT_FOUND"


def test_only_creator_deletes(store, family):
    sam = join_family(store, family.family_id)
    event = _create(store, family).event
    assert actions.delete_event(store, sam.token, event.id).error.code == "FORBIDDEN"
    assert store.tables["events"][0]["archived_at"] is None
