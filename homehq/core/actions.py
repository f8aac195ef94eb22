"""
Handler boundary.

Handlers run validate -> authenticate -> authorise -> business rule ->
persist -> shape, and always return an ``Ok`` or ``Err``. Services signal
expected failures by raising ``ServiceError``; the ``action`` decorator turns
those into ``Err`` and anything else into a generic internal error with the
exception text kept in ``details.reason``.
"""

import functools
import logging
from typing import Any, Callable, Optional

from homehq.core.exceptions import (
    FORBIDDEN,
    INTERNAL_ERROR,
    UNAUTHORIZED,
    ServiceError,
)
from homehq.core.results import ApiError, Err
from homehq.core.validation import ValidationFailure
from homehq.modules.auth.schemas import AuthContext, AuthStatus

logger = logging.getLogger(__name__)

DEFAULT_INTERNAL_MESSAGE = "An unexpected error occurred. Please try again."


def action(name: str, internal_code: str = INTERNAL_ERROR, internal_message: str = DEFAULT_INTERNAL_MESSAGE):
    """Wrap a handler so that it never raises past its boundary."""
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ServiceError as e:
                if e.status_code in (401, 403):
                    logger.warning("%s refused: %s (%s)", name, e.code, e.message)
                elif e.status_code >= 500:
                    logger.error("%s failed: %s (%s) %s", name, e.code, e.message, e.details or "")
                return Err(error=e.to_api_error())
            except Exception as e:
                logger.exception("%s raised an unexpected error", name)
                return Err(error=ApiError(
                    code=internal_code,
                    message=internal_message,
                    details={"reason": str(e)},
                ))
        wrapper.action_name = name
        return wrapper
    return decorator


def invalid(failure: ValidationFailure, code: str) -> Err:
    return Err(error=failure.to_api_error(code))


def require_user(ctx: AuthContext, message: str = "Authentication required. Please log in.") -> str:
    if ctx.status == AuthStatus.UNAUTHENTICATED:
        raise ServiceError(401, UNAUTHORIZED, message)
    return ctx.user_id


def require_family(ctx: AuthContext, message: str = "You must belong to a family to perform this action",
                   unauthenticated_message: Optional[str] = None) -> AuthContext:
    """Return ``ctx`` when it carries a family, otherwise raise 401/403."""
    if unauthenticated_message:
        require_user(ctx, unauthenticated_message)
    else:
        require_user(ctx)
    if ctx.status != AuthStatus.OK or not ctx.family_id:
        raise ServiceError(403, FORBIDDEN, message)
    return ctx
