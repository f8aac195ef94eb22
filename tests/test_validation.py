"""Request schema validation tests."""

from homehq.core.validation import MALFORMED_BODY, format_iso_datetime, parse_iso_datetime, validate
from homehq.modules.events.schemas import CreateEventRequest, GetEventsQuery, UpdateEventRequest
from homehq.modules.families.schemas import CreateFamilyRequest
from homehq.modules.tasks.schemas import CreateTaskFromSuggestionRequest, GetTasksQuery

P1 = "11111111-1111-4111-8111-111111111111"
P2 = "22222222-2222-4222-8222-222222222222"


def _event(**overrides) -> dict:
    payload = {
        "title": "Dentist",
        "start_time": "2026-05-01T10:00:00.000Z",
        "end_time": "2026-05-01T11:00:00.000Z",
        "is_private": False,
    }
    payload.update(overrides)
    return payload


def test_family_name_length_boundary():
    assert validate(CreateFamilyRequest, {"name": "a" * 100, "display_name": "Alex"}).is_ok

    result = validate(CreateFamilyRequest, {"name": "a" * 101, "display_name": "Alex"})
    assert not result.is_ok
    assert result.error.first.field == "name"
    assert result.error.first.message == "Family name must be 100 characters or less"


def test_family_name_is_trimmed():
    result = validate(CreateFamilyRequest, {"name": "  Smith  ", "display_name": "Alex"})
    assert result.data.name == "Smith"


def test_missing_fields_use_their_own_messages():
    result = validate(CreateFamilyRequest, {})
    assert result.error.field_errors == {
        "name": ["Family name is required"],
        "display_name": ["Display name is required"],
    }


def test_non_object_body_is_rejected():
    result = validate(CreateFamilyRequest, ["Smith"])
    assert result.error.first.message == "Request body must be an object"


def test_malformed_json_body_is_rejected():
    result = validate(CreateFamilyRequest, MALFORMED_BODY)
    assert result.error.first.field == "body"
    assert result.error.first.message == "Request body must be valid JSON"


def test_end_time_must_follow_start_time():
    result = validate(CreateEventRequest, _event(end_time="2026-05-01T10:00:00.000Z"))
    assert not result.is_ok
    assert result.error.first.field == "end_time"
    assert result.error.first.message == "end_time must be after start_time"


def test_private_event_allows_one_participant():
    assert validate(CreateEventRequest, _event(is_private=True, participant_ids=[P1])).is_ok

    result = validate(CreateEventRequest, _event(is_private=True, participant_ids=[P1, P2]))
    assert result.error.first.field == "participant_ids"


def test_shared_event_allows_many_participants():
    assert validate(CreateEventRequest, _event(participant_ids=[P1, P2])).is_ok


def test_timestamps_without_z_suffix_are_rejected():
    result = validate(CreateEventRequest, _event(start_time="2026-05-01 10:00:00"))
    assert result.error.first.field == "start_time"


def test_accepted_timestamp_is_kept_verbatim():
    result = validate(CreateEventRequest, _event(start_time="2026-05-01T10:00:00.250Z"))
    assert result.data.start_time == "2026-05-01T10:00:00.250Z"


def test_is_private_is_not_coerced_from_string():
    result = validate(CreateEventRequest, _event(is_private="true"))
    assert result.error.first.field == "is_private"


def test_client_supplied_ownership_fields_are_dropped():
    result = validate(CreateEventRequest, _event(family_id=P1, created_by=P2))
    assert "family_id" not in result.data.model_dump()
    assert "created_by" not in result.data.model_dump()


def test_unknown_suggestion_id_is_rejected():
    result = validate(CreateEventRequest, _event(accept_suggestions=["groceries"]))
    assert not result.is_ok


def test_template_suggestion_ids_are_accepted():
    result = validate(CreateEventRequest, _event(accept_suggestions=["birthday", "birthday_cake"]))
    assert result.data.accept_suggestions == ["birthday", "birthday_cake"]

    payload = {"title": "Cake", "event_id": P1, "suggestion_id": "birthday_cake", "is_private": False}
    assert not validate(CreateTaskFromSuggestionRequest, payload).is_ok


def test_update_event_changes_keep_explicit_null_description():
    result = validate(UpdateEventRequest, {"description": None, "title": None})
    assert result.data.changes() == {"description": None}


def test_update_event_refuses_participants_when_made_private():
    result = validate(UpdateEventRequest, {"is_private": True, "participant_ids": [P1]})
    assert result.error.first.field == "participant_ids"


def test_events_query_parses_strings():
    result = validate(GetEventsQuery, {"is_private": "false", "limit": "20", "offset": "40"})
    assert result.data.is_private is False
    assert result.data.limit == 20
    assert result.data.offset == 40


def test_events_query_limits():
    assert not validate(GetEventsQuery, {"limit": "0"}).is_ok
    assert not validate(GetEventsQuery, {"limit": "501"}).is_ok
    assert not validate(GetEventsQuery, {"offset": "-1"}).is_ok
    assert not validate(GetEventsQuery, {"is_private": "yes"}).is_ok


def test_events_query_date_range():
    result = validate(GetEventsQuery, {
        "start_date": "2026-06-01T00:00:00.000Z",
        "end_date": "2026-05-01T00:00:00.000Z",
    })
    assert result.error.first.field == "start_date"


def test_tasks_query_accepts_me():
    assert validate(GetTasksQuery, {"assigned_to": "me"}).data.assigned_to == "me"
    assert not validate(GetTasksQuery, {"assigned_to": "someone"}).is_ok


def test_tasks_query_sort_default():
    assert validate(GetTasksQuery, {}).data.sort == "due_date_asc"
    assert not validate(GetTasksQuery, {"sort": "title"}).is_ok


def test_suggestion_task_title_limit():
    payload = {"title": "a" * 501, "event_id": P1, "suggestion_id": "birthday", "is_private": False}
    result = validate(CreateTaskFromSuggestionRequest, payload)
    assert result.error.first.message == "Title cannot exceed 500 characters"


def test_iso_datetime_format_round_trip():
    value = "2026-05-01T10:00:00.123Z"
    assert format_iso_datetime(parse_iso_datetime(value)) == value

    result = validate(CreateEventRequest, _event(start_time=value, end_time="2026-05-01T11:00:00.000Z"))
    assert result.data.start_time == value


def test_non_canonical_timestamps_are_rejected():
    for value in (
        "2026-05-01T10:00:00Z",
        "2026-05-01T10:00:00.5Z",
        "2026-05-01T10:00:00.12Z",
        "2026-05-01T10:00:00.1234Z",
        "2026-05-01T10:00:00.123456Z",
        "2026-05-01T10:00:00.000+00:00",
        "2026-05-01",
    ):
        result = validate(CreateEventRequest, _event(start_time=value))
        assert not result.is_ok, value
        assert result.error.first.field == "start_time"


def test_impossible_calendar_date_is_rejected():
    result = validate(CreateEventRequest, _event(start_time="2026-02-30T10:00:00.000Z"))
    assert result.error.first.field == "start_time"


def test_validation_failure_as_api_error():
    result = validate(CreateFamilyRequest, {"display_name": "Alex"})
    error = result.error.to_api_error("INVALID_INPUT")
    assert error.to_dict() == {
        "code": "INVALID_INPUT",
        "message": "Family name is required",
        "details": {"field": "name", "field_errors": {"name": ["Family name is required"]}},
    }
