from typing import Any, Optional

from fastapi import APIRouter, Depends
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.suggestions import actions

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.post("/preview")
async def preview_suggestions(
    body: Any = Depends(get_json_body),
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Task suggestions for an event title, without creating anything"""
    return render_result(actions.preview_suggestions(supabase, token, body))
