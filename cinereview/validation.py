"""Payload validation decoupled from the HTTP layer.

``validate_payload`` never raises for bad input; it hands back a
``ValidationResult`` carrying either the parsed model or the field errors.
Route handlers use ``require_valid`` which turns errors into a
``ValidationError`` before anything touches the database.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cinereview.errors import ValidationError


@dataclass
class FieldError:
    field: str
    message: str
    rejected_value: Any = None

    def to_dict(self):
        return {"field": self.field, "message": self.message, "value": self.rejected_value}


@dataclass
class ValidationResult:
    value: Optional[BaseModel] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self):
        return not self.errors


def _field_name(schema, loc):
    parts = []
    for part in loc:
        if isinstance(part, int):
            parts.append(str(part))
            continue
        info = schema.model_fields.get(part) if schema is not None else None
        parts.append(info.alias if info is not None and info.alias else str(part))
        schema = None
    return ".".join(parts)


def _message(err):
    msg = err.get("msg", "Invalid value")
    # pydantic prefixes messages raised from our own validators
    return msg.removeprefix("Value error, ")


def validate_payload(schema, payload):
    if not isinstance(payload, dict):
        return ValidationResult(errors=[
            FieldError("body", "Request body must be a JSON object", payload)
        ])
    try:
        return ValidationResult(value=schema.model_validate(payload))
    except PydanticValidationError as exc:
        errors = [
            FieldError(
                _field_name(schema, err.get("loc", ())),
                _message(err),
                None if err.get("type") == "missing" else err.get("input"),
            )
            for err in exc.errors(include_url=False)
        ]
        return ValidationResult(errors=errors)


def require_valid(schema, payload):
    result = validate_payload(schema, payload)
    if not result.ok:
        raise ValidationError("Validation errors", [e.to_dict() for e in result.errors])
    return result.value


def parse_object_id(value, name="id"):
    if not ObjectId.is_valid(value):
        raise ValidationError(
            "Validation errors", [FieldError(name, f"Invalid {name}", value).to_dict()]
        )
    return ObjectId(value)
