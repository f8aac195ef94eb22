from typing import Any, Optional

from supabase import Client

from homehq.core.actions import action, invalid, require_user
from homehq.core.exceptions import VALIDATION_ERROR
from homehq.core.results import Ok
from homehq.core.validation import validate
from homehq.modules.auth.service import AuthService
from homehq.modules.suggestions.schemas import SuggestionPreviewRequest, SuggestionPreviewResponse
from homehq.modules.suggestions.service import SuggestionService


@action("preview_suggestions")
def preview_suggestions(supabase: Client, token: Optional[str], raw: Any):
    """Suggestions an event with this title, start and attendees would produce; nothing is stored."""
    validated = validate(SuggestionPreviewRequest, raw)
    if not validated.is_ok:
        return invalid(validated.error, VALIDATION_ERROR)
    ctx = AuthService(supabase).resolve(token)
    require_user(ctx)
    request = validated.data
    suggestions = SuggestionService(supabase).suggest_for(
        request.title, request.start_time, ctx, request.participant_ids, request.member_ids,
    )
    return Ok(data=SuggestionPreviewResponse(suggestions=suggestions))
