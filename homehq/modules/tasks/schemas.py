from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, model_validator
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from homehq.core.results import PaginationMeta
from homehq.core.validation import (
    RequestSchema, is_uuid, iso_datetime, one_of, parse_iso_datetime, query_bool, query_int,
    refinement_error, strict_bool, trimmed_str, uuid_str,
)
from homehq.modules.suggestions.engine import LEGACY_SUGGESTION_IDS

TASK_SORTS = ("due_date_asc", "due_date_desc", "created_at_desc")

TaskTitle = trimmed_str(empty_message="Title cannot be empty", type_message="Title is required")
SuggestedTaskTitle = trimmed_str(500, empty_message="Title cannot be empty",
                                 too_long_message="Title cannot exceed 500 characters",
                                 type_message="Title is required")
DueDate = iso_datetime("Invalid date format. Expected ISO 8601")
AssignedTo = uuid_str("Invalid UUID format for assigned_to")
IsPrivate = strict_bool("is_private is required")


def _check_assignee_filter(value):
    if value == "me" or is_uuid(value):
        return value
    raise PydanticCustomError("assignee", "assigned_to must be a valid UUID or 'me'")


AssigneeFilter = Annotated[str, BeforeValidator(_check_assignee_filter)]


class CreateTaskRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "is_private": "is_private is required",
    }

    title: TaskTitle
    due_date: Optional[DueDate] = None
    assigned_to: Optional[AssignedTo] = None
    is_private: IsPrivate


class CreateTaskFromSuggestionRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "event_id": "Event ID is required",
        "suggestion_id": "Invalid suggestion_id. Must be one of: birthday, health, outing, travel",
        "is_private": "is_private is required",
    }

    title: SuggestedTaskTitle
    event_id: uuid_str("Invalid UUID format for event_id")
    suggestion_id: one_of(LEGACY_SUGGESTION_IDS,
                          "Invalid suggestion_id. Must be one of: birthday, health, outing, travel")
    is_private: IsPrivate
    due_date: Optional[DueDate] = None
    assigned_to: Optional[AssignedTo] = None


class UpdateTaskRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {"is_completed": "is_completed is required"}

    is_completed: strict_bool("is_completed must be a boolean")


class GetTasksQuery(RequestSchema):
    is_completed: Optional[query_bool("is_completed must be 'true' or 'false'")] = None
    is_private: Optional[query_bool("is_private must be 'true' or 'false'")] = None
    assigned_to: Optional[AssigneeFilter] = None
    due_before: Optional[iso_datetime("due_before must be a valid ISO 8601 timestamp")] = None
    due_after: Optional[iso_datetime("due_after must be a valid ISO 8601 timestamp")] = None
    event_id: Optional[uuid_str("event_id must be a valid UUID")] = None
    sort: one_of(TASK_SORTS, "sort must be one of: due_date_asc, due_date_desc, created_at_desc") = "due_date_asc"
    limit: query_int(1, 500, "limit must be an integer between 1 and 500") = 100
    offset: query_int(0, None, "offset must be a non-negative integer") = 0

    @model_validator(mode="after")
    def check_range(self):
        if self.due_after and self.due_before:
            if parse_iso_datetime(self.due_after) > parse_iso_datetime(self.due_before):
                raise refinement_error("due_after", "due_after must be before or equal to due_before")
        return self


class TaskResponse(BaseModel):
    id: str
    family_id: str
    created_by: Optional[str] = None
    title: str
    due_date: Optional[str] = None
    assigned_to: Optional[str] = None
    is_private: bool
    is_completed: bool
    completed_at: Optional[str] = None
    completed_by: Optional[str] = None
    event_id: Optional[str] = None
    suggestion_id: Optional[str] = None
    created_from_suggestion: bool
    created_at: str
    updated_at: Optional[str] = None
    archived_at: Optional[str] = None


class TaskWithDetails(TaskResponse):
    created_by_name: str = "Unknown"
    assigned_to_name: Optional[str] = None
    completed_by_name: Optional[str] = None
    event_title: Optional[str] = None


class ListTasksResponse(BaseModel):
    tasks: List[TaskWithDetails]
    pagination: PaginationMeta
