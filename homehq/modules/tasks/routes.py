from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.tasks import actions

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    request: Request,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """List visible tasks. Filters: is_completed, is_private, assigned_to (uuid or "me"),
    due_before, due_after, event_id, sort, limit, offset"""
    return render_result(actions.list_tasks(supabase, token, dict(request.query_params)))


@router.post("", status_code=201)
async def create_task(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    return render_result(actions.create_task(supabase, token, body), 201)


@router.post("/from-suggestion", status_code=201)
async def create_task_from_suggestion(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Create a task from an accepted suggestion"""
    return render_result(actions.create_task_from_suggestion(supabase, token, body), 201)


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Single task with creator, assignee and event names"""
    return render_result(actions.get_task(supabase, token, task_id))


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Mark a task completed or not completed"""
    return render_result(actions.update_task_completion(supabase, token, task_id, body))
