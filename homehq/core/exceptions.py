from typing import Any, Dict, Optional

from homehq.core.results import ApiError

# Error codes
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_INPUT = "INVALID_INPUT"
INVALID_QUERY_PARAMS = "INVALID_QUERY_PARAMS"
INVALID_EVENT_ID = "INVALID_EVENT_ID"
INVALID_PRIVATE_EVENT = "INVALID_PRIVATE_EVENT"
INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
INVALID_PARTICIPANTS = "INVALID_PARTICIPANTS"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
TASK_NOT_FOUND = "TASK_NOT_FOUND"
USER_ALREADY_IN_FAMILY = "USER_ALREADY_IN_FAMILY"
CONFLICT = "CONFLICT"
RATE_LIMITED = "RATE_LIMITED"
DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ServiceError(Exception):
    """Expected failure raised by a service and turned into an ``Err`` by the handler."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    def to_api_error(self) -> ApiError:
        return ApiError(code=self.code, message=self.message, details=self.details)

    def __repr__(self) -> str:
        return f"ServiceError({self.status_code}, {self.code!r}, {self.message!r})"


def database_error(message: str, exc: Optional[BaseException] = None) -> ServiceError:
    details = {"reason": str(exc)} if exc is not None else None
    return ServiceError(500, DATABASE_ERROR, message, details)
