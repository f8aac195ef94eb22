import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from homehq.core.exceptions import (
    EVENT_NOT_FOUND, FORBIDDEN, TASK_NOT_FOUND, ServiceError, database_error,
)
from homehq.core.results import PaginationMeta
from homehq.database.supabase_client import maybe_row
from homehq.modules.auth.schemas import AuthContext
from homehq.modules.tasks.schemas import (
    CreateTaskFromSuggestionRequest, CreateTaskRequest, GetTasksQuery, ListTasksResponse,
    TaskResponse, TaskWithDetails,
)

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "due_date_asc": ("due_date", False),
    "due_date_desc": ("due_date", True),
    "created_at_desc": ("created_at", True),
}


def visible_to(user_id: str) -> str:
    """PostgREST ``or`` filter: shared rows, or private rows created by ``user_id``."""
    return f"is_private.eq.false,created_by.eq.{user_id}"


class TaskService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _names(self, table: str, column: str, ids: Iterable[Optional[str]]) -> Dict[str, str]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table(table).select(f"id, {column}").in_("id", wanted).execute()
        return {row["id"]: row[column] for row in result.data or []}

    def _with_details(self, rows: List[Dict[str, Any]]) -> List[TaskWithDetails]:
        profile_names = self._names(
            "profiles", "display_name",
            [r.get(k) for r in rows for k in ("created_by", "assigned_to", "completed_by")],
        )
        event_titles = self._names("events", "title", [r.get("event_id") for r in rows])
        return [
            TaskWithDetails(
                **row,
                created_by_name=profile_names.get(row.get("created_by"), "Unknown"),
                assigned_to_name=profile_names.get(row.get("assigned_to")),
                completed_by_name=profile_names.get(row.get("completed_by")),
                event_title=event_titles.get(row.get("event_id")),
            )
            for row in rows
        ]

    def _check_assignee(self, assigned_to: Optional[str], family_id: str):
        if not assigned_to:
            return
        assignee = maybe_row(self.supabase.table("profiles")
                             .select("id, family_id")
                             .eq("id", assigned_to)
                             .eq("family_id", family_id)
                             .maybe_single()
                             .execute())
        if not assignee:
            raise ServiceError(403, FORBIDDEN, "Cannot assign task to user outside your family",
                               {"assigned_to": assigned_to})

    def _insert(self, task_data: Dict[str, Any]) -> TaskResponse:
        try:
            result = self.supabase.table("tasks").insert(task_data).execute()
        except Exception as e:
            raise database_error("Failed to create task", e)
        if not result.data:
            raise database_error("Failed to create task")
        logger.info("Created task %s in family %s", result.data[0]["id"], task_data["family_id"])
        return TaskResponse(**result.data[0])

    def list_tasks(self, params: GetTasksQuery, user_id: str, family_id: str) -> ListTasksResponse:
        query = self.supabase.table("tasks")\
            .select("*", count="exact")\
            .eq("family_id", family_id)\
            .is_("archived_at", "null")\
            .or_(visible_to(user_id))

        if params.is_completed is not None:
            query = query.eq("is_completed", params.is_completed)
        if params.is_private is not None:
            query = query.eq("is_private", params.is_private)
        if params.assigned_to:
            query = query.eq("assigned_to", user_id if params.assigned_to == "me" else params.assigned_to)
        if params.due_after:
            query = query.gte("due_date", params.due_after)
        if params.due_before:
            query = query.lte("due_date", params.due_before)
        if params.event_id:
            query = query.eq("event_id", params.event_id)

        column, desc = SORT_ORDERS[params.sort]
        result = query.order(column, desc=desc, nullsfirst=False)\
            .range(params.offset, params.offset + params.limit - 1)\
            .execute()

        rows = result.data or []
        total = result.count if result.count is not None else len(rows)
        return ListTasksResponse(
            tasks=self._with_details(rows),
            pagination=PaginationMeta.build(total, params.limit, params.offset),
        )

    def create_task(self, task_data: CreateTaskRequest, ctx: AuthContext) -> TaskResponse:
        """Manual task. Not idempotent: every call inserts a new row."""
        self._check_assignee(task_data.assigned_to, ctx.family_id)
        return self._insert({
            "family_id": ctx.family_id,
            "created_by": ctx.user_id,
            "title": task_data.title,
            "due_date": task_data.due_date,
            "assigned_to": task_data.assigned_to,
            "is_private": task_data.is_private,
            "event_id": None,
            "suggestion_id": None,
            "created_from_suggestion": False,
        })

    def create_task_from_suggestion(self, task_data: CreateTaskFromSuggestionRequest,
                                    ctx: AuthContext) -> TaskResponse:
        event = maybe_row(self.supabase.table("events")
                          .select("id, family_id, is_private, created_by")
                          .eq("id", task_data.event_id)
                          .is_("archived_at", "null")
                          .maybe_single()
                          .execute())
        hidden = event is not None and event["is_private"] and event["created_by"] != ctx.user_id
        if not event or event["family_id"] != ctx.family_id or hidden:
            raise ServiceError(404, EVENT_NOT_FOUND, "Event not found or has been archived",
                               {"event_id": task_data.event_id})

        self._check_assignee(task_data.assigned_to, ctx.family_id)
        return self._insert({
            "family_id": ctx.family_id,
            "created_by": ctx.user_id,
            "title": task_data.title,
            "due_date": task_data.due_date,
            "assigned_to": task_data.assigned_to,
            "is_private": task_data.is_private,
            "event_id": task_data.event_id,
            "suggestion_id": task_data.suggestion_id,
            "created_from_suggestion": True,
        })

    def _find_visible(self, task_id: str, ctx: AuthContext) -> Dict[str, Any]:
        """Non-archived task of the caller's family; someone else's private task counts as missing."""
        task = maybe_row(self.supabase.table("tasks")
                         .select("*")
                         .eq("id", task_id)
                         .eq("family_id", ctx.family_id)
                         .is_("archived_at", "null")
                         .maybe_single()
                         .execute())
        if not task or (task["is_private"] and task["created_by"] != ctx.user_id):
            raise ServiceError(404, TASK_NOT_FOUND, "Task not found")
        return task

    def get_task(self, task_id: str, ctx: AuthContext) -> TaskWithDetails:
        return self._with_details([self._find_visible(task_id, ctx)])[0]

    def update_task_completion(self, task_id: str, is_completed: bool, ctx: AuthContext) -> TaskResponse:
        """Creator, assignee or a family admin may toggle completion."""
        task = self._find_visible(task_id, ctx)
        if ctx.user_id not in (task["created_by"], task["assigned_to"]) and not ctx.is_admin:
            raise ServiceError(403, FORBIDDEN, "You do not have permission to update this task")

        now = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("tasks")\
            .update({
                "is_completed": is_completed,
                "completed_at": now if is_completed else None,
                "completed_by": ctx.user_id if is_completed else None,
                "updated_at": now,
            })\
            .eq("id", task_id)\
            .execute()
        if not result.data:
            # Row-level security filtered the update out
            raise ServiceError(404, TASK_NOT_FOUND, "Task not found")
        return TaskResponse(**result.data[0])
