import logging
from typing import Any, Dict, Optional

from supabase import AuthApiError, Client

from homehq.core.exceptions import ServiceError, UNAUTHORIZED, CONFLICT, INTERNAL_ERROR
from homehq.database.supabase_client import maybe_row
from homehq.modules.auth.schemas import (
    AuthContext, AuthStatus, LoginRequest, RegisterRequest, RegisterResponse, TokenResponse,
)

logger = logging.getLogger(__name__)

REJECTED_TOKEN_STATUSES = (401, 403)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_user(self, token: str) -> Optional[Dict[str, Any]]:
        """User behind ``token``, or None if Supabase rejects it.

        Only a 401/403 from the auth server counts as a rejected token. Retryable
        errors, other statuses and network failures are re-raised so callers
        report them as internal.
        """
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except AuthApiError as e:
            if e.status in REJECTED_TOKEN_STATUSES:
                logger.info("Rejected session token: %s", e.message)
                return None
            raise
        if not user_response or not user_response.user:
            return None
        user = user_response.user
        return {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("id, family_id, role, display_name")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        return maybe_row(result)

    def resolve(self, token: Optional[str]) -> AuthContext:
        """Resolve a session token to unauthenticated / no_family / ok.

        Family and role always come from the profiles table, never from JWT
        metadata, so a freshly created family is visible immediately.
        """
        if not token:
            return AuthContext.unauthenticated()
        user = self._get_user(token)
        if user is None:
            return AuthContext.unauthenticated()
        profile = self.get_profile(user["id"])
        if not profile or not profile.get("family_id"):
            return AuthContext.no_family(user["id"])
        return AuthContext(
            status=AuthStatus.OK,
            user_id=user["id"],
            family_id=profile["family_id"],
            role=profile.get("role") or "member",
            display_name=profile.get("display_name"),
        )

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        user_metadata = {}
        if register_data.full_name:
            user_metadata["full_name"] = register_data.full_name
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })
        except AuthApiError as e:
            if e.code in ("user_already_exists", "email_exists") or "already registered" in e.message.lower():
                raise ServiceError(409, CONFLICT, "User already exists")
            raise ServiceError(500, INTERNAL_ERROR, "Registration failed", {"reason": e.message})

        if not auth_response.user:
            raise ServiceError(500, INTERNAL_ERROR, "Failed to register user")
        logger.info("Registered user %s", auth_response.user.id)
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="User registered successfully"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except AuthApiError as e:
            if e.status in (400, 401):
                raise ServiceError(401, UNAUTHORIZED, "Invalid email or password")
            raise ServiceError(500, INTERNAL_ERROR, "Login failed", {"reason": e.message})

        if not auth_response.user or not auth_response.session:
            raise ServiceError(401, UNAUTHORIZED, "Invalid email or password")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def logout(self) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Supabase tokens are stateless JWTs; they stay valid until they expire
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning("Sign out failed: %s", e)
            return False

    def get_current_user(self, token: Optional[str]) -> Dict[str, Any]:
        """Current user with family context; raises 401 without a valid session."""
        user = self._get_user(token) if token else None
        if user is None:
            raise ServiceError(401, UNAUTHORIZED, "Invalid or expired token")
        profile = self.get_profile(user["id"]) or {}
        status = AuthStatus.OK if profile.get("family_id") else AuthStatus.NO_FAMILY
        return {
            "id": user["id"],
            "email": user["email"],
            "user_metadata": user["user_metadata"],
            "status": status,
            "family_id": profile.get("family_id"),
            "role": profile.get("role"),
            "display_name": profile.get("display_name"),
        }
