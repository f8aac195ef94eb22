import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from supabase import Client

from homehq.core.exceptions import (
    EVENT_NOT_FOUND, FORBIDDEN, INVALID_PARTICIPANTS, INVALID_TIME_RANGE, ServiceError, database_error,
)
from homehq.core.results import PaginationMeta
from homehq.core.validation import parse_iso_datetime
from homehq.database.supabase_client import maybe_row
from homehq.modules.auth.schemas import AuthContext
from homehq.modules.events.schemas import (
    CreateEventRequest, CreateEventResponse, DeleteEventResponse, EventParticipant, EventResponse,
    GetEventsQuery, ListEventsResponse, MemberSummary, ProfileSummary, UpdateEventRequest,
)
from homehq.modules.suggestions.schemas import TaskSuggestionWithAccepted
from homehq.modules.suggestions.service import SuggestionService
from homehq.modules.tasks.schemas import TaskResponse
from homehq.modules.tasks.service import visible_to

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Event not found or has been archived"


class EventService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Reads

    def _with_details(self, rows: List[Dict[str, Any]]) -> List[EventResponse]:
        """Attach creator names and participants with two extra queries per page."""
        if not rows:
            return []
        event_ids = [r["id"] for r in rows]
        participants = self.supabase.table("event_participants")\
            .select("*")\
            .in_("event_id", event_ids)\
            .order("created_at")\
            .execute().data or []

        profile_ids = {r["created_by"] for r in rows} | {p["profile_id"] for p in participants if p.get("profile_id")}
        member_ids = {p["member_id"] for p in participants if p.get("member_id")}
        profiles = {}
        if profile_ids:
            result = self.supabase.table("profiles").select("id, display_name").in_("id", sorted(profile_ids)).execute()
            profiles = {p["id"]: p for p in result.data or []}
        members = {}
        if member_ids:
            result = self.supabase.table("family_members").select("id, name, is_admin").in_("id", sorted(member_ids)).execute()
            members = {m["id"]: m for m in result.data or []}

        by_event: Dict[str, List[EventParticipant]] = {}
        for p in participants:
            profile = profiles.get(p.get("profile_id"))
            member = members.get(p.get("member_id"))
            by_event.setdefault(p["event_id"], []).append(EventParticipant(
                id=p["id"],
                event_id=p["event_id"],
                profile_id=p.get("profile_id"),
                member_id=p.get("member_id"),
                created_at=p.get("created_at"),
                profile=ProfileSummary(**profile) if profile else None,
                member=MemberSummary(**member) if member else None,
            ))

        return [
            EventResponse(
                **row,
                created_by_name=profiles.get(row["created_by"], {}).get("display_name") or "Unknown",
                participants=by_event.get(row["id"], []),
            )
            for row in rows
        ]

    def _find_visible(self, event_id: str, ctx: AuthContext) -> Dict[str, Any]:
        """Non-archived event of the caller's family that the caller may see.

        Missing, archived, other-family and other people's private events are
        all reported the same way.
        """
        event = maybe_row(self.supabase.table("events")
                          .select("*")
                          .eq("id", event_id)
                          .eq("family_id", ctx.family_id)
                          .is_("archived_at", "null")
                          .maybe_single()
                          .execute())
        if not event or (event["is_private"] and event["created_by"] != ctx.user_id):
            logger.info("Event %s not visible to %s", event_id, ctx.user_id)
            raise ServiceError(404, EVENT_NOT_FOUND, NOT_FOUND_MESSAGE)
        return event

    def list_events(self, params: GetEventsQuery, ctx: AuthContext) -> ListEventsResponse:
        query = self.supabase.table("events")\
            .select("*", count="exact")\
            .eq("family_id", ctx.family_id)\
            .is_("archived_at", "null")\
            .or_(visible_to(ctx.user_id))

        if params.start_date:
            query = query.gte("start_time", params.start_date)
        if params.end_date:
            query = query.lte("end_time", params.end_date)
        if params.is_private is not None:
            query = query.eq("is_private", params.is_private)
        if params.participant_id:
            linked = self.supabase.table("event_participants")\
                .select("event_id")\
                .eq("profile_id", params.participant_id)\
                .execute()
            event_ids = sorted({p["event_id"] for p in linked.data or []})
            if not event_ids:
                return ListEventsResponse(events=[], pagination=PaginationMeta.build(0, params.limit, params.offset))
            query = query.in_("id", event_ids)

        result = query.order("start_time")\
            .range(params.offset, params.offset + params.limit - 1)\
            .execute()
        rows = result.data or []
        total = result.count if result.count is not None else len(rows)
        return ListEventsResponse(
            events=self._with_details(rows),
            pagination=PaginationMeta.build(total, params.limit, params.offset),
        )

    def get_event(self, event_id: str, ctx: AuthContext) -> EventResponse:
        return self._with_details([self._find_visible(event_id, ctx)])[0]

    # Writes

    def _missing_from_family(self, table: str, ids: List[str], family_id: str) -> List[str]:
        if not ids:
            return []
        result = self.supabase.table(table)\
            .select("id")\
            .eq("family_id", family_id)\
            .in_("id", list(ids))\
            .execute()
        found = {r["id"] for r in result.data or []}
        return [i for i in ids if i not in found]

    def _add_participants(self, event_id: str, profile_ids: List[str], member_ids: List[str]):
        rows = [{"event_id": event_id, "profile_id": pid} for pid in dict.fromkeys(profile_ids)]
        rows += [{"event_id": event_id, "member_id": mid} for mid in dict.fromkeys(member_ids)]
        if rows:
            self.supabase.table("event_participants").insert(rows).execute()

    def create_event(self, request: CreateEventRequest, ctx: AuthContext) -> CreateEventResponse:
        """Insert the event, its participants and the tasks of accepted suggestions.

        There is no transaction across these writes; if a later step fails the
        event row and any tasks already created are removed again.
        """
        participant_ids = request.participant_ids or []
        member_ids = request.member_ids or []
        if self._missing_from_family("profiles", participant_ids, ctx.family_id):
            raise ServiceError(403, FORBIDDEN, "Cannot add participants from other families")
        if self._missing_from_family("family_members", member_ids, ctx.family_id):
            raise ServiceError(403, FORBIDDEN, "All participants must belong to your family")

        suggestions = SuggestionService(self.supabase).suggest_for(
            request.title, request.start_time, ctx, participant_ids, member_ids,
        )
        accepted = set(request.accept_suggestions or [])

        try:
            inserted = self.supabase.table("events").insert({
                "family_id": ctx.family_id,
                "created_by": ctx.user_id,
                "title": request.title,
                "description": request.description,
                "start_time": request.start_time,
                "end_time": request.end_time,
                "is_private": request.is_private,
            }).execute()
        except Exception as e:
            raise database_error("Failed to create event. Please try again.", e)
        if not inserted.data:
            raise database_error("Event was not created")
        event = inserted.data[0]

        created_tasks: List[TaskResponse] = []
        try:
            self._add_participants(event["id"], participant_ids, member_ids)
            for suggestion in suggestions:
                if suggestion.suggestion_id not in accepted:
                    continue
                task = self.supabase.table("tasks").insert({
                    "family_id": ctx.family_id,
                    "created_by": ctx.user_id,
                    "title": suggestion.title,
                    "due_date": suggestion.due_date,
                    "is_private": request.is_private,
                    "event_id": event["id"],
                    "suggestion_id": suggestion.suggestion_id,
                    "created_from_suggestion": True,
                    "assigned_to": None,
                    "is_completed": False,
                }).execute()
                created_tasks.append(TaskResponse(**task.data[0]))
        except Exception as e:
            logger.error("Rolling back event %s after failure: %s", event["id"], e)
            if created_tasks:
                self.supabase.table("tasks").delete().in_("id", [t.id for t in created_tasks]).execute()
            self.supabase.table("events").delete().eq("id", event["id"]).execute()
            raise

        logger.info("Event %s created with %d tasks", event["id"], len(created_tasks))
        return CreateEventResponse(
            event=self._with_details([event])[0],
            suggestions=[
                TaskSuggestionWithAccepted(**s.model_dump(), accepted=s.suggestion_id in accepted)
                for s in suggestions
            ],
            created_tasks=created_tasks,
        )

    def update_event(self, event_id: str, request: UpdateEventRequest, ctx: AuthContext) -> EventResponse:
        current = self._find_visible(event_id, ctx)
        if current["created_by"] != ctx.user_id:
            raise ServiceError(403, FORBIDDEN, "You do not have permission to update this event",
                               {"reason": "Only event creator can update events"})

        participant_ids = request.participant_ids
        will_be_private = current["is_private"] if request.is_private is None else request.is_private
        if participant_ids:
            if will_be_private and len(participant_ids) > 1:
                raise ServiceError(400, INVALID_PARTICIPANTS, "Private events cannot have multiple participants")
            invalid_ids = self._missing_from_family("profiles", participant_ids, ctx.family_id)
            if invalid_ids:
                raise ServiceError(400, INVALID_PARTICIPANTS, "Some participants do not belong to your family",
                                   {"invalid_participant_ids": invalid_ids})

        if bool(request.start_time) != bool(request.end_time):
            start = parse_iso_datetime(request.start_time or current["start_time"])
            end = parse_iso_datetime(request.end_time or current["end_time"])
            if end <= start:
                raise ServiceError(400, INVALID_TIME_RANGE, "End time must be after start time",
                                   {"start_time": start.isoformat(), "end_time": end.isoformat()})

        changes = request.changes()
        if changes:
            try:
                self.supabase.table("events").update(changes).eq("id", event_id).execute()
            except Exception as e:
                raise database_error("Failed to update event", e)

        if request.is_private is True and not current["is_private"]:
            # Mirrors the database trigger that drops participants of private events
            self.supabase.table("event_participants").delete().eq("event_id", event_id).execute()
        if participant_ids is not None:
            linked = self.supabase.table("event_participants")\
                .select("id, profile_id")\
                .eq("event_id", event_id)\
                .execute()
            stale = [p["id"] for p in linked.data or [] if p.get("profile_id")]
            if stale:
                self.supabase.table("event_participants").delete().in_("id", stale).execute()
            self._add_participants(event_id, participant_ids, [])

        logger.info("Event %s updated by %s", event_id, ctx.user_id)
        return self.get_event(event_id, ctx)

    def delete_event(self, event_id: str, ctx: AuthContext) -> DeleteEventResponse:
        """Soft delete. Tasks linked to the event stay, with event_id cleared."""
        event = self._find_visible(event_id, ctx)
        if event["created_by"] != ctx.user_id:
            raise ServiceError(403, FORBIDDEN, "You do not have permission to delete this event",
                               {"reason": "Only event creator can delete events"})

        archived_at = datetime.now(timezone.utc).isoformat()
        try:
            self.supabase.table("events")\
                .update({"archived_at": archived_at})\
                .eq("id", event_id)\
                .is_("archived_at", "null")\
                .execute()
            self.supabase.table("tasks")\
                .update({"event_id": None})\
                .eq("event_id", event_id)\
                .execute()
        except Exception as e:
            raise database_error("Failed to delete event", e)

        logger.info("Event %s archived by %s", event_id, ctx.user_id)
        return DeleteEventResponse(id=event_id, archived_at=archived_at)
