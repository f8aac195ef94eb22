from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, EmailStr, field_validator
from pydantic_core import PydanticCustomError

from homehq.core.validation import RequestSchema


class AuthStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NO_FAMILY = "no_family"
    OK = "ok"


class AuthContext(BaseModel):
    """Who is acting, and in which family. Read fresh for every handler call."""

    status: AuthStatus
    user_id: Optional[str] = None
    family_id: Optional[str] = None
    role: Optional[str] = None
    display_name: Optional[str] = None

    @classmethod
    def unauthenticated(cls) -> "AuthContext":
        return cls(status=AuthStatus.UNAUTHENTICATED)

    @classmethod
    def no_family(cls, user_id: str) -> "AuthContext":
        return cls(status=AuthStatus.NO_FAMILY, user_id=user_id)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class LoginRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "email": "Email is required",
        "password": "Password is required",
    }

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(RequestSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "email": "Email is required",
        "password": "Password is required",
    }

    email: EmailStr
    password: str
    full_name: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_min_length(cls, value: str) -> str:
        if len(value) < 6:
            raise PydanticCustomError("string_too_short", "Password must be at least 6 characters")
        return value


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    status: AuthStatus
    family_id: Optional[str] = None
    role: Optional[str] = None
    display_name: Optional[str] = None
