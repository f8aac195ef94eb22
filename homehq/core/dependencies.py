"""
Core FastAPI dependencies: session token, per-request Supabase client, raw JSON body, rate limit
"""

import logging
from typing import Any, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from supabase import Client

from homehq.core.validation import MALFORMED_BODY

logger = logging.getLogger(__name__)

# A missing token is not rejected here; handlers report it as UNAUTHORIZED
security = HTTPBearer(auto_error=False)


def get_gateway(request: Request):
    return request.app.state.gateway


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Optional[str]:
    """Extract JWT token from Authorization header, if any"""
    if credentials is None:
        return None
    return credentials.credentials


def get_supabase(
    token: Optional[str] = Depends(get_current_token),
    gateway=Depends(get_gateway),
) -> Client:
    """Supabase client authorised as the caller, so row-level security sees them."""
    return gateway.client_for(token)


async def get_json_body(request: Request) -> Any:
    """Request body as parsed JSON; None when empty, MALFORMED_BODY when not JSON."""
    body = await request.body()
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        logger.info("Malformed JSON body on %s", request.url.path)
        return MALFORMED_BODY


def rate_limit(limiter: Limiter, limit_value: str):
    """Router dependency counting every request of a client against one shared limit.

    Exceeding it raises slowapi's RateLimitExceeded, handled in main.
    """
    @limiter.limit(limit_value)
    async def check_rate_limit(request: Request):
        return None

    return check_rate_limit
