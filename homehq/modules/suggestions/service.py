import logging
from typing import Iterable, List, Optional

from supabase import Client

from homehq.modules.auth.schemas import AuthContext
from homehq.modules.suggestions.engine import SuggestionContext, suggest
from homehq.modules.suggestions.schemas import TaskSuggestion

logger = logging.getLogger(__name__)


class SuggestionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def context_for(self, ctx: AuthContext, participant_ids: Optional[Iterable[str]] = None,
                    member_ids: Optional[Iterable[str]] = None) -> SuggestionContext:
        """Role of the caller plus the family's children and the adults attending.

        Only ids belonging to the caller's family are taken into account.
        """
        role = ctx.role or "member"
        if not ctx.family_id:
            return SuggestionContext(user_role=role)

        children = self.supabase.table("family_members")\
            .select("id")\
            .eq("family_id", ctx.family_id)\
            .eq("is_admin", False)\
            .execute()

        attending_members = []
        member_ids = sorted(set(member_ids or []))
        if member_ids:
            attending_members = self.supabase.table("family_members")\
                .select("id, is_admin")\
                .eq("family_id", ctx.family_id)\
                .in_("id", member_ids)\
                .execute().data or []

        attending_profiles = []
        participant_ids = sorted(set(participant_ids or []))
        if participant_ids:
            attending_profiles = self.supabase.table("profiles")\
                .select("id, role")\
                .eq("family_id", ctx.family_id)\
                .in_("id", participant_ids)\
                .execute().data or []

        return SuggestionContext(
            user_role=role,
            family_child_ids=tuple(c["id"] for c in children.data or []),
            attending_child_ids=tuple(m["id"] for m in attending_members if not m["is_admin"]),
            adult_attending=any(p["role"] == "admin" for p in attending_profiles)
            or any(m["is_admin"] for m in attending_members),
        )

    def suggest_for(self, title: str, start_time: str, ctx: AuthContext,
                    participant_ids: Optional[Iterable[str]] = None,
                    member_ids: Optional[Iterable[str]] = None) -> List[TaskSuggestion]:
        context = self.context_for(ctx, participant_ids, member_ids)
        suggestions = suggest(title, start_time, context)
        logger.debug("%d suggestions for %r", len(suggestions), title)
        return suggestions
