import logging
from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid, require_family
from homehq.core.exceptions import (
    INVALID_EVENT_ID, INVALID_INPUT, INVALID_PRIVATE_EVENT, INVALID_QUERY_PARAMS,
)
from homehq.core.results import ApiError, Err, Ok
from homehq.core.validation import is_uuid, validate
from homehq.modules.auth.service import AuthService
from homehq.modules.events.schemas import CreateEventRequest, GetEventsQuery, UpdateEventRequest
from homehq.modules.events.service import EventService

logger = logging.getLogger(__name__)

NO_FAMILY_MESSAGE = "User does not belong to a family"


def _invalid_event_id(event_id: Any) -> Err:
    return Err(error=ApiError(
        code=INVALID_EVENT_ID,
        message="Event ID must be a valid UUID",
        details={"eventId": event_id},
    ))


def _private_with_many_participants(raw: Any) -> bool:
    if not isinstance(raw, dict) or raw.get("is_private") is not True:
        return False
    participants = raw.get("participant_ids")
    return isinstance(participants, list) and len(participants) > 1


@action("list_events", internal_message="Failed to fetch events")
def list_events(supabase: Client, token: Optional[str], raw_query: Any):
    validated = validate(GetEventsQuery, raw_query)
    if not validated.is_ok:
        return invalid(validated.error, INVALID_QUERY_PARAMS)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=EventService(supabase).list_events(validated.data, ctx))


@action("get_event", internal_message="Failed to fetch event")
def get_event(supabase: Client, token: Optional[str], event_id: str):
    if not is_uuid(event_id):
        return _invalid_event_id(event_id)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=EventService(supabase).get_event(event_id, ctx))


@action("create_event", internal_message="Failed to create event. Please try again.")
def create_event(supabase: Client, token: Optional[str], raw: Any):
    """Create an event and, in the same call, the tasks of accepted suggestions.

    A private event with several participants is always refused with
    INVALID_PRIVATE_EVENT, whatever else is wrong with the payload.
    """
    if _private_with_many_participants(raw):
        return Err(error=ApiError(
            code=INVALID_PRIVATE_EVENT,
            message="Private events cannot have multiple participants",
            details={"field": "participant_ids"},
        ))
    validated = validate(CreateEventRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, INVALID_INPUT)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    created = EventService(supabase).create_event(validated.data, ctx)
    logger.info("User %s created event %s", ctx.user_id, created.event.id)
    return Ok(data=created)


@action("update_event", internal_message="Failed to update event")
def update_event(supabase: Client, token: Optional[str], event_id: str, raw: Any):
    if not is_uuid(event_id):
        return _invalid_event_id(event_id)
    validated = validate(UpdateEventRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, INVALID_INPUT)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=EventService(supabase).update_event(event_id, validated.data, ctx))


@action("delete_event", internal_message="Failed to delete event")
def delete_event(supabase: Client, token: Optional[str], event_id: str):
    if not is_uuid(event_id):
        return _invalid_event_id(event_id)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=EventService(supabase).delete_event(event_id, ctx))
