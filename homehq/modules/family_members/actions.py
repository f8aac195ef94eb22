from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid, require_family
from homehq.core.exceptions import VALIDATION_ERROR
from homehq.core.results import Ok
from homehq.core.validation import ValidationFailure, is_uuid, validate
from homehq.modules.auth.service import AuthService
from homehq.modules.family_members.schemas import (
    CreateFamilyMemberRequest, FamilyMemberListResponse, UpdateFamilyMemberRequest,
)
from homehq.modules.family_members.service import FamilyMemberService

NO_FAMILY_MESSAGE = "User does not belong to a family"


def _invalid_member_id(member_id: Any):
    return invalid(ValidationFailure.single("member_id", "Invalid member ID"), VALIDATION_ERROR)


@action("list_family_members", internal_message="Failed to fetch family members")
def list_family_members(supabase: Client, token: Optional[str]):
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    members = FamilyMemberService(supabase).list_members(ctx.family_id)
    return Ok(data=FamilyMemberListResponse(members=members))


@action("create_family_member", internal_message="Failed to create family member")
def create_family_member(supabase: Client, token: Optional[str], raw: Any):
    validated = validate(CreateFamilyMemberRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=FamilyMemberService(supabase).create_member(validated.data, ctx.family_id))


@action("update_family_member", internal_message="Failed to update family member")
def update_family_member(supabase: Client, token: Optional[str], member_id: str, raw: Any):
    if not is_uuid(member_id):
        return _invalid_member_id(member_id)
    validated = validate(UpdateFamilyMemberRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    return Ok(data=FamilyMemberService(supabase).update_member(member_id, validated.data, ctx.family_id))


@action("delete_family_member", internal_message="Failed to delete family member")
def delete_family_member(supabase: Client, token: Optional[str], member_id: str):
    if not is_uuid(member_id):
        return _invalid_member_id(member_id)
    ctx = require_family(AuthService(supabase).resolve(token), NO_FAMILY_MESSAGE)
    FamilyMemberService(supabase).delete_member(member_id, ctx.family_id)
    return Ok(data={"id": member_id, "deleted": True})
