from typing import Any, Optional

from fastapi import APIRouter, Depends
from supabase import Client

from homehq.core.dependencies import get_current_token, get_json_body, get_supabase
from homehq.core.presenter import render_result
from homehq.modules.auth import actions

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    body: Any = Depends(get_json_body),
    supabase: Client = Depends(get_supabase)
):
    """Register a new user"""
    return render_result(actions.register(supabase, body), 201)


@router.post("/login")
async def login(
    body: Any = Depends(get_json_body),
    supabase: Client = Depends(get_supabase)
):
    """Login and get access token"""
    return render_result(actions.login(supabase, body))


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    return render_result(actions.logout(supabase, token))


@router.get("/me")
async def get_current_user(
    token: Optional[str] = Depends(get_current_token),
    supabase: Client = Depends(get_supabase)
):
    """Current user with family and role, read from the profiles table."""
    return render_result(actions.me(supabase, token))
