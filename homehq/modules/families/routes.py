from typing import Any, Optional

from fastapi import APIRouter, Depends
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.families import actions

router = APIRouter(prefix="/families", tags=["families"])


@router.post("", status_code=201)
async def create_family(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Create a new family; the caller becomes its admin"""
    return render_result(actions.create_family(supabase, token, body), 201)


@router.get("/me")
async def get_my_family(
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Family of the current user, with its profiles"""
    return render_result(actions.get_my_family(supabase, token))
