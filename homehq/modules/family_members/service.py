import logging
from typing import List

from supabase import Client

from homehq.core.exceptions import NOT_FOUND, ServiceError, database_error
from homehq.modules.family_members.schemas import (
    CreateFamilyMemberRequest, FamilyMemberResponse, UpdateFamilyMemberRequest,
)

logger = logging.getLogger(__name__)


class FamilyMemberService:
    """Account-less family members. Every query is scoped to the caller's family."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_members(self, family_id: str) -> List[FamilyMemberResponse]:
        try:
            result = self.supabase.table("family_members")\
                .select("*")\
                .eq("family_id", family_id)\
                .order("created_at")\
                .execute()
        except Exception as e:
            raise database_error("Failed to fetch family members", e)
        return [FamilyMemberResponse(**m) for m in result.data or []]

    def create_member(self, member_data: CreateFamilyMemberRequest, family_id: str) -> FamilyMemberResponse:
        try:
            result = self.supabase.table("family_members").insert({
                "family_id": family_id,
                "name": member_data.name,
                "is_admin": member_data.is_admin,
            }).execute()
        except Exception as e:
            raise database_error("Failed to create family member", e)

        if not result.data:
            raise database_error("Failed to create family member")
        logger.info("Created family member %s in family %s", result.data[0]["id"], family_id)
        return FamilyMemberResponse(**result.data[0])

    def update_member(self, member_id: str, member_data: UpdateFamilyMemberRequest,
                      family_id: str) -> FamilyMemberResponse:
        update_data = member_data.model_dump(exclude_none=True)
        try:
            result = self.supabase.table("family_members")\
                .update(update_data)\
                .eq("id", member_id)\
                .eq("family_id", family_id)\
                .execute()
        except Exception as e:
            raise database_error("Failed to update family member", e)

        if not result.data:
            raise ServiceError(404, NOT_FOUND, "Family member not found")
        return FamilyMemberResponse(**result.data[0])

    def delete_member(self, member_id: str, family_id: str) -> bool:
        """Hard delete; a member outside the family is reported as not found."""
        try:
            result = self.supabase.table("family_members")\
                .delete()\
                .eq("id", member_id)\
                .eq("family_id", family_id)\
                .execute()
        except Exception as e:
            raise database_error("Failed to delete family member", e)

        if not result.data:
            raise ServiceError(404, NOT_FOUND, "Family member not found")
        logger.info("Deleted family member %s from family %s", member_id, family_id)
        return True
