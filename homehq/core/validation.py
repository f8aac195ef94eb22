"""
Schema validation shared by every handler.

Request schemas are pydantic models built from the field types below. Each
field type carries its own user-facing messages so a failure can be reported
as ``(field, message)`` without post-processing pydantic's wording.
"""

import re
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from homehq.core.results import ApiError, Err, Ok

ModelT = TypeVar("ModelT", bound=BaseModel)

ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


class MalformedBody:
    """Marker for a request body that could not be parsed as JSON."""

    def __repr__(self) -> str:
        return "MALFORMED_BODY"


MALFORMED_BODY = MalformedBody()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp (``Z`` or numeric offset) into an aware datetime.

    Naive values are taken to be UTC, which is how timestamptz columns come back.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_iso_datetime(value: datetime) -> str:
    """UTC ISO 8601 string with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_RE.match(value))


# Field types

def trimmed_str(max_length: Optional[int] = None, *, empty_message: str,
                too_long_message: Optional[str] = None, type_message: str = "Must be a string"):
    def check(value: Any) -> str:
        if not isinstance(value, str):
            raise PydanticCustomError("string_type", type_message)
        value = value.strip()
        if not value:
            raise PydanticCustomError("string_too_short", empty_message)
        if max_length is not None and len(value) > max_length:
            raise PydanticCustomError("string_too_long", too_long_message or f"Must be {max_length} characters or less")
        return value
    return Annotated[str, BeforeValidator(check)]


def iso_datetime(message: str = "Invalid date format. Expected ISO 8601"):
    """Timestamp string in canonical form (``YYYY-MM-DDTHH:MM:SS.mmmZ``).

    Only strings that re-serialise to themselves are accepted, so the value
    handed on is exactly what the caller sent.
    """
    def check(value: Any) -> str:
        if not isinstance(value, str) or not ISO_DATETIME_RE.match(value):
            raise PydanticCustomError("datetime_format", message)
        try:
            canonical = format_iso_datetime(parse_iso_datetime(value))
        except ValueError:
            raise PydanticCustomError("datetime_format", message)
        if canonical != value:
            raise PydanticCustomError("datetime_format", message)
        return value
    return Annotated[str, BeforeValidator(check)]


def uuid_str(message: str = "Invalid UUID format"):
    def check(value: Any) -> str:
        if not is_uuid(value):
            raise PydanticCustomError("uuid_format", message)
        return value
    return Annotated[str, BeforeValidator(check)]


def strict_bool(message: str):
    def check(value: Any) -> bool:
        if not isinstance(value, bool):
            raise PydanticCustomError("bool_type", message)
        return value
    return Annotated[bool, BeforeValidator(check)]


def one_of(choices: Iterable[str], message: str):
    allowed = tuple(choices)

    def check(value: Any) -> str:
        if value not in allowed:
            raise PydanticCustomError("enum", message)
        return value
    return Annotated[str, BeforeValidator(check)]


def query_bool(message: str):
    """Query-string boolean: only the literal strings ``"true"`` and ``"false"``."""
    def check(value: Any) -> bool:
        if value == "true":
            return True
        if value == "false":
            return False
        raise PydanticCustomError("bool_parsing", message)
    return Annotated[bool, BeforeValidator(check)]


def query_int(minimum: int, maximum: Optional[int], message: str):
    def check(value: Any) -> int:
        if isinstance(value, bool):
            raise PydanticCustomError("int_type", message)
        if isinstance(value, str):
            value = value.strip()
            if not re.fullmatch(r"-?\d+", value):
                raise PydanticCustomError("int_parsing", message)
            value = int(value)
        if not isinstance(value, int):
            raise PydanticCustomError("int_type", message)
        if value < minimum or (maximum is not None and value > maximum):
            raise PydanticCustomError("int_range", message)
        return value
    return Annotated[int, BeforeValidator(check)]


def refinement_error(field: str, message: str) -> PydanticCustomError:
    """Error for a cross-field rule, reported against ``field``."""
    return PydanticCustomError("refinement", message, {"field": field})


class RequestSchema(BaseModel):
    """Base for request bodies and query strings; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    # Message used when a required key is absent, per field
    required_messages: ClassVar[Dict[str, str]] = {}


# Failures

class FieldError(BaseModel):
    field: str
    message: str


class ValidationFailure(BaseModel):
    errors: List[FieldError]

    @property
    def first(self) -> FieldError:
        return self.errors[0]

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped

    def to_api_error(self, code: str) -> ApiError:
        first = self.first
        return ApiError(
            code=code,
            message=first.message,
            details={"field": first.field, "field_errors": self.field_errors},
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailure":
        return cls(errors=[FieldError(field=field, message=message)])

    @classmethod
    def from_pydantic(cls, schema: Type[RequestSchema], exc: ValidationError) -> "ValidationFailure":
        errors = []
        for error in exc.errors():
            ctx = error.get("ctx") or {}
            loc = [str(part) for part in error.get("loc", ())]
            field = ctx.get("field") or ".".join(loc) or "input"
            if error["type"] == "missing":
                top = loc[0] if loc else field
                message = schema.required_messages.get(top, f"{top} is required")
            elif error["type"] == "model_type":
                message = "Request body must be an object"
            else:
                message = error["msg"]
            errors.append(FieldError(field=field, message=message))
        return cls(errors=errors)


def validate(schema: Type[ModelT], raw: Any) -> Union[Ok[ModelT], Err[ValidationFailure]]:
    """Validate ``raw`` against ``schema`` without raising."""
    if isinstance(raw, MalformedBody):
        return Err(error=ValidationFailure.single("body", "Request body must be valid JSON"))
    try:
        return Ok(data=schema.model_validate(raw if raw is not None else {}))
    except ValidationError as exc:
        return Err(error=ValidationFailure.from_pydantic(schema, exc))
