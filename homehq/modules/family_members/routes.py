from typing import Any, Optional

from fastapi import APIRouter, Depends
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.family_members import actions

router = APIRouter(prefix="/family-members", tags=["family-members"])


@router.get("")
async def list_family_members(
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    return render_result(actions.list_family_members(supabase, token))


@router.post("", status_code=201)
async def create_family_member(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Add a member without an account (e.g. a child) to the caller's family"""
    return render_result(actions.create_family_member(supabase, token, body), 201)


@router.patch("/{member_id}")
async def update_family_member(
    member_id: str,
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    return render_result(actions.update_family_member(supabase, token, member_id, body))


@router.delete("/{member_id}")
async def delete_family_member(
    member_id: str,
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Remove a member permanently"""
    return render_result(actions.delete_family_member(supabase, token, member_id))
