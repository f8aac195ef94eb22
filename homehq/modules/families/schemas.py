from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel

from homehq.core.validation import RequestSchema, trimmed_str

FamilyName = trimmed_str(
    100,
    empty_message="Family name cannot be empty",
    too_long_message="Family name must be 100 characters or less",
    type_message="Family name must be a string",
)
DisplayName = trimmed_str(
    100,
    empty_message="Display name cannot be empty",
    too_long_message="Display name must be 100 characters or less",
    type_message="Display name must be a string",
)


class CreateFamilyRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "name": "Family name is required",
        "display_name": "Display name is required",
    }

    name: FamilyName
    display_name: DisplayName


class ProfileResponse(BaseModel):
    id: str
    family_id: Optional[str] = None
    role: str
    display_name: str
    created_at: Optional[str] = None


class CreateFamilyResponse(BaseModel):
    id: str
    name: str
    created_at: str
    profile: ProfileResponse


class FamilyResponse(BaseModel):
    id: str
    name: str
    created_at: str
    profiles: List[ProfileResponse] = []
