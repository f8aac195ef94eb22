from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel

from homehq.core.validation import RequestSchema, iso_datetime, trimmed_str, uuid_str


class TaskSuggestion(BaseModel):
    suggestion_id: str
    title: str
    due_date: Optional[str] = None
    description: Optional[str] = None


class TaskSuggestionWithAccepted(TaskSuggestion):
    accepted: bool = False


class SuggestionPreviewRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "start_time": "start_time is required",
    }

    title: trimmed_str(200, empty_message="Title is required", too_long_message="Title must be 200 characters or less")
    start_time: iso_datetime("start_time must be a valid ISO 8601 timestamp")
    participant_ids: Optional[List[uuid_str("Each participant ID must be a valid UUID")]] = None
    member_ids: Optional[List[uuid_str("Each member ID must be a valid UUID")]] = None


class SuggestionPreviewResponse(BaseModel):
    suggestions: List[TaskSuggestion]
