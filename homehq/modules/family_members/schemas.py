from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, model_validator

from homehq.core.validation import RequestSchema, refinement_error, strict_bool, trimmed_str

MemberName = trimmed_str(
    100,
    empty_message="Name is required",
    too_long_message="Name must be less than 100 characters",
    type_message="Name must be a string",
)
IsAdmin = strict_bool("is_admin must be a boolean")


class CreateFamilyMemberRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {"name": "Name is required"}

    name: MemberName
    is_admin: IsAdmin = False


class UpdateFamilyMemberRequest(RequestSchema):
    name: Optional[MemberName] = None
    is_admin: Optional[IsAdmin] = None

    @model_validator(mode="after")
    def has_changes(self):
        if self.name is None and self.is_admin is None:
            raise refinement_error("name", "At least one field must be provided")
        return self


class FamilyMemberResponse(BaseModel):
    id: str
    family_id: str
    name: str
    is_admin: bool
    created_at: str
    updated_at: Optional[str] = None


class FamilyMemberListResponse(BaseModel):
    members: List[FamilyMemberResponse]
