import logging
from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid, require_family, require_user
from homehq.core.exceptions import (
    INTERNAL_SERVER_ERROR, INVALID_INPUT, USER_ALREADY_IN_FAMILY, ServiceError,
)
from homehq.core.results import Ok
from homehq.core.validation import validate
from homehq.modules.auth.schemas import AuthStatus
from homehq.modules.auth.service import AuthService
from homehq.modules.families.schemas import CreateFamilyRequest
from homehq.modules.families.service import FamilyService

logger = logging.getLogger(__name__)


@action(
    "create_family",
    internal_code=INTERNAL_SERVER_ERROR,
    internal_message="An unexpected error occurred while creating the family",
)
def create_family(supabase: Client, token: Optional[str], raw: Any):
    """Create a family with the caller as its first admin."""
    validated = validate(CreateFamilyRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, INVALID_INPUT)

    ctx = AuthService(supabase).resolve(token)
    user_id = require_user(ctx, "Missing or invalid authentication token")
    if ctx.status == AuthStatus.OK:
        raise ServiceError(409, USER_ALREADY_IN_FAMILY, "User already belongs to a family",
                           {"family_id": ctx.family_id})

    return Ok(data=FamilyService(supabase).create_family(validated.data, user_id))


@action("get_my_family")
def get_my_family(supabase: Client, token: Optional[str]):
    ctx = require_family(AuthService(supabase).resolve(token), "You must join a family first")
    return Ok(data=FamilyService(supabase).get_family(ctx.family_id))
