from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, model_validator

from homehq.core.results import PaginationMeta
from homehq.core.validation import (
    RequestSchema, iso_datetime, one_of, parse_iso_datetime, query_bool, query_int,
    refinement_error, strict_bool, trimmed_str, uuid_str,
)
from homehq.modules.suggestions.engine import SUGGESTION_IDS
from homehq.modules.suggestions.schemas import TaskSuggestionWithAccepted
from homehq.modules.tasks.schemas import TaskResponse

EventTitle = trimmed_str(200, empty_message="Title is required", too_long_message="Title must be 200 characters or less",
                         type_message="Title must be a string")
UpdatedEventTitle = trimmed_str(200, empty_message="Title must not be empty",
                                too_long_message="Title must be 200 characters or less",
                                type_message="Title must be a string")
StartTime = iso_datetime("start_time must be a valid ISO 8601 timestamp")
EndTime = iso_datetime("end_time must be a valid ISO 8601 timestamp")
ParticipantId = uuid_str("Each participant ID must be a valid UUID")
MemberId = uuid_str("Each member ID must be a valid UUID")
SuggestionId = one_of(SUGGESTION_IDS, "Invalid suggestion ID")
IsPrivate = strict_bool("is_private must be a boolean")


class CreateEventRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "start_time": "start_time is required",
        "end_time": "end_time is required",
        "is_private": "is_private is required",
    }

    title: EventTitle
    description: Optional[str] = None
    start_time: StartTime
    end_time: EndTime
    is_private: IsPrivate
    participant_ids: Optional[List[ParticipantId]] = None
    member_ids: Optional[List[MemberId]] = None
    accept_suggestions: Optional[List[SuggestionId]] = None

    @model_validator(mode="after")
    def check_refinements(self):
        if parse_iso_datetime(self.end_time) <= parse_iso_datetime(self.start_time):
            raise refinement_error("end_time", "end_time must be after start_time")
        if self.is_private and self.participant_ids and len(self.participant_ids) > 1:
            raise refinement_error("participant_ids", "Private events cannot have multiple participants")
        return self


class UpdateEventRequest(RequestSchema):
    title: Optional[UpdatedEventTitle] = None
    description: Optional[str] = None
    start_time: Optional[StartTime] = None
    end_time: Optional[EndTime] = None
    is_private: Optional[IsPrivate] = None
    participant_ids: Optional[List[ParticipantId]] = None

    @model_validator(mode="after")
    def check_refinements(self):
        if self.start_time and self.end_time:
            if parse_iso_datetime(self.end_time) <= parse_iso_datetime(self.start_time):
                raise refinement_error("end_time", "end_time must be after start_time")
        if self.is_private is True and self.participant_ids:
            raise refinement_error("participant_ids", "Cannot add participants to private event")
        return self

    def changes(self) -> Dict[str, Any]:
        """Columns to write: fields the client sent, without participants.

        ``description`` may be cleared with an explicit null; other fields
        sent as null are ignored.
        """
        data = self.model_dump(exclude_unset=True, exclude={"participant_ids"})
        return {k: v for k, v in data.items() if v is not None or k == "description"}


class GetEventsQuery(RequestSchema):
    start_date: Optional[iso_datetime("start_date must be a valid ISO 8601 timestamp")] = None
    end_date: Optional[iso_datetime("end_date must be a valid ISO 8601 timestamp")] = None
    is_private: Optional[query_bool("is_private must be 'true' or 'false'")] = None
    participant_id: Optional[uuid_str("participant_id must be a valid UUID")] = None
    limit: query_int(1, 500, "limit must be an integer between 1 and 500") = 100
    offset: query_int(0, None, "offset must be a non-negative integer") = 0

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date:
            if parse_iso_datetime(self.start_date) > parse_iso_datetime(self.end_date):
                raise refinement_error("start_date", "start_date must be before or equal to end_date")
        return self


class ProfileSummary(BaseModel):
    id: str
    display_name: str


class MemberSummary(BaseModel):
    id: str
    name: str
    is_admin: bool = False


class EventParticipant(BaseModel):
    id: str
    event_id: str
    profile_id: Optional[str] = None
    member_id: Optional[str] = None
    created_at: Optional[str] = None
    profile: Optional[ProfileSummary] = None
    member: Optional[MemberSummary] = None


class EventResponse(BaseModel):
    id: str
    family_id: str
    created_by: str
    created_by_name: str = "Unknown"
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    is_private: bool
    created_at: str
    updated_at: Optional[str] = None
    archived_at: Optional[str] = None
    participants: List[EventParticipant] = []


class ListEventsResponse(BaseModel):
    events: List[EventResponse]
    pagination: PaginationMeta


class CreateEventResponse(BaseModel):
    event: EventResponse
    suggestions: List[TaskSuggestionWithAccepted]
    created_tasks: List[TaskResponse]


class DeleteEventResponse(BaseModel):
    id: str
    archived_at: str
