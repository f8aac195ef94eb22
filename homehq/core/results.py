"""
Uniform result shape returned by every handler.

``{"success": true, "data": ...}`` or
``{"success": false, "error": {"code", "message", "details"?}}``.
"""

from typing import Any, Dict, Generic, Literal, Optional, TypeVar, Union

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict

T = TypeVar("T")
E = TypeVar("E")


class ApiError(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = jsonable_encoder(self.details)
        return payload


class Ok(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: Literal[True] = True
    data: T

    @property
    def is_ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": jsonable_encoder(self.data)}


class Err(BaseModel, Generic[E]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: Literal[False] = False
    error: E

    @property
    def is_ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        error = self.error.to_dict() if hasattr(self.error, "to_dict") else jsonable_encoder(self.error)
        return {"success": False, "error": error}


Result = Union[Ok[T], Err[ApiError]]


def ok(data: Any) -> Ok:
    return Ok(data=data)


def err(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Err:
    return Err(error=ApiError(code=code, message=message, details=details))


# HTTP status for each error code; unknown codes fall back to 500
ERROR_STATUS_MAP: Dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "INVALID_INPUT": 400,
    "INVALID_QUERY_PARAMS": 400,
    "INVALID_EVENT_ID": 400,
    "INVALID_PRIVATE_EVENT": 400,
    "INVALID_TIME_RANGE": 400,
    "INVALID_PARTICIPANTS": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "EVENT_NOT_FOUND": 404,
    "TASK_NOT_FOUND": 404,
    "USER_ALREADY_IN_FAMILY": 409,
    "CONFLICT": 409,
    "RATE_LIMITED": 429,
    "DATABASE_ERROR": 500,
    "INTERNAL_ERROR": 500,
    "INTERNAL_SERVER_ERROR": 500,
}


def status_for(code: str) -> int:
    return ERROR_STATUS_MAP.get(code, 500)


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def build(cls, total: int, limit: int, offset: int) -> "PaginationMeta":
        return cls(total=total, limit=limit, offset=offset, has_more=total > offset + limit)
