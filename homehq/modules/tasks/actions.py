import logging
from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid, require_family
from homehq.core.exceptions import INVALID_QUERY_PARAMS, VALIDATION_ERROR
from homehq.core.results import Ok
from homehq.core.validation import ValidationFailure, is_uuid, validate
from homehq.modules.auth.service import AuthService
from homehq.modules.tasks.schemas import (
    CreateTaskFromSuggestionRequest, CreateTaskRequest, GetTasksQuery, UpdateTaskRequest,
)
from homehq.modules.tasks.service import TaskService

logger = logging.getLogger(__name__)

NO_FAMILY_MESSAGE = "You must join a family before managing tasks"


@action("list_tasks", internal_message="Failed to fetch tasks")
def list_tasks(supabase: Client, token: Optional[str], raw_query: Any):
    validated = validate(GetTasksQuery, raw_query)
    if not validated.is_ok:
        return invalid(validated.error, INVALID_QUERY_PARAMS)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=TaskService(supabase).list_tasks(validated.data, ctx.user_id, ctx.family_id))


@action("get_task", internal_message="Failed to fetch task")
def get_task(supabase: Client, token: Optional[str], task_id: str):
    if not is_uuid(task_id):
        return invalid(ValidationFailure.single("task_id", "Task ID must be a valid UUID"), VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=TaskService(supabase).get_task(task_id, ctx))


@action("create_task")
def create_task(supabase: Client, token: Optional[str], raw: Any):
    validated = validate(CreateTaskRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=TaskService(supabase).create_task(validated.data, ctx))


@action("create_task_from_suggestion")
def create_task_from_suggestion(supabase: Client, token: Optional[str], raw: Any):
    """Accept a suggestion: same pipeline as create_task, linked to its event."""
    validated = validate(CreateTaskFromSuggestionRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=TaskService(supabase).create_task_from_suggestion(validated.data, ctx))


@action("update_task_completion", internal_message="Failed to update task")
def update_task_completion(supabase: Client, token: Optional[str], task_id: str, raw: Any):
    if not is_uuid(task_id):
        return invalid(ValidationFailure.single("task_id", "Task ID must be a valid UUID"), VALIDATION_ERROR)
    validated = validate(UpdateTaskRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    task = TaskService(supabase).update_task_completion(task_id, validated.data.is_completed, ctx)
    logger.info("Task %s marked %s by %s", task_id,
                "completed" if task.is_completed else "not completed", ctx.user_id)
    return Ok(data=task)
