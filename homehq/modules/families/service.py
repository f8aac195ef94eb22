import logging

from supabase import Client

from homehq.core.exceptions import (
    DATABASE_ERROR, FORBIDDEN, USER_ALREADY_IN_FAMILY, ServiceError, database_error,
)
from homehq.database.supabase_client import maybe_row
from homehq.modules.families.schemas import (
    CreateFamilyRequest, CreateFamilyResponse, FamilyResponse, ProfileResponse,
)

logger = logging.getLogger(__name__)


class FamilyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_family(self, family_data: CreateFamilyRequest, user_id: str) -> CreateFamilyResponse:
        """Create a family and make the caller its admin"""
        try:
            existing = maybe_row(self.supabase.table("profiles")
                                 .select("id, family_id")
                                 .eq("id", user_id)
                                 .maybe_single()
                                 .execute())
        except Exception as e:
            raise database_error("Failed to check existing profile", e)

        if existing and existing.get("family_id"):
            raise ServiceError(409, USER_ALREADY_IN_FAMILY, "User already belongs to a family",
                               {"family_id": existing["family_id"]})

        try:
            rpc_result = self.supabase.rpc("create_family_and_assign_admin", {
                "user_id": user_id,
                "family_name": family_data.name,
                "user_display_name": family_data.display_name,
            }).execute()
        except Exception as e:
            raise database_error("Failed to create family due to database error", e)

        family_id = rpc_result.data if rpc_result else None
        if not family_id:
            raise database_error("Failed to create family due to database error")

        family = maybe_row(self.supabase.table("families")
                           .select("id, name, created_at")
                           .eq("id", family_id)
                           .maybe_single()
                           .execute())
        if not family:
            # Created but not readable, usually a row-level security policy problem
            raise ServiceError(500, DATABASE_ERROR, "Family created but not accessible", {"family_id": family_id})

        profile = self.supabase.table("profiles")\
            .select("id, family_id, role, display_name, created_at")\
            .eq("id", user_id)\
            .single()\
            .execute()

        logger.info("Created family %s with admin %s", family_id, user_id)
        return CreateFamilyResponse(
            id=family["id"],
            name=family["name"],
            created_at=family["created_at"],
            profile=ProfileResponse(**profile.data),
        )

    def get_family(self, family_id: str) -> FamilyResponse:
        family = maybe_row(self.supabase.table("families")
                           .select("id, name, created_at")
                           .eq("id", family_id)
                           .maybe_single()
                           .execute())
        if not family:
            raise ServiceError(403, FORBIDDEN, "You do not have access to this family")

        profiles = self.supabase.table("profiles")\
            .select("id, family_id, role, display_name, created_at")\
            .eq("family_id", family_id)\
            .order("display_name")\
            .execute()

        return FamilyResponse(
            id=family["id"],
            name=family["name"],
            created_at=family["created_at"],
            profiles=[ProfileResponse(**p) for p in profiles.data or []],
        )
