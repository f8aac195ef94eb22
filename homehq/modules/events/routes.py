from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.events import actions

router = APIRouter(prefix="/events", tags=["events"])


@router.get("")
async def list_events(
    request: Request,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """List visible events. Filters: start_date, end_date, is_private, participant_id, limit, offset"""
    return render_result(actions.list_events(supabase, token, dict(request.query_params)))


@router.post("", status_code=201)
async def create_event(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Create an event, its participants and the tasks of accepted suggestions"""
    return render_result(actions.create_event(supabase, token, body), 201)


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    return render_result(actions.get_event(supabase, token, event_id))


@router.patch("/{event_id}")
async def update_event(
    event_id: str,
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Update an event. Only its creator may do so"""
    return render_result(actions.update_event(supabase, token, event_id, body))


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Archive an event"""
    return render_result(actions.delete_event(supabase, token, event_id))
