import logging
from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid
from homehq.core.exceptions import VALIDATION_ERROR
from homehq.core.results import Ok
from homehq.core.validation import validate
from homehq.modules.auth.schemas import CurrentUserResponse, LoginRequest, RegisterRequest
from homehq.modules.auth.service import AuthService

logger = logging.getLogger(__name__)


@action("register", internal_message="Registration failed. Please try again.")
def register(supabase: Client, raw: Any):
    validated = validate(RegisterRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    return Ok(data=AuthService(supabase).register(validated.data))


@action("login", internal_message="Login failed. Please try again.")
def login(supabase: Client, raw: Any):
    validated = validate(LoginRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    return Ok(data=AuthService(supabase).login(validated.data))


@action("logout")
def logout(supabase: Client, token: Optional[str]):
    AuthService(supabase).logout()
    return Ok(data={"message": "Logged out successfully"})


@action("me")
def me(supabase: Client, token: Optional[str]):
    user = AuthService(supabase).get_current_user(token)
    return Ok(data=CurrentUserResponse(**user))
