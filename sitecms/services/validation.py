"""
Dynamic content validation.

Checks a content payload against the field definitions of a content type
and checks the field definitions themselves when a content type is saved.
Validation is pure: no I/O, no mutation of the payload.
"""

import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable

from pydantic import AnyUrl, EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from sitecms.models.content_type import FieldType

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)

TEXT_TYPES = {FieldType.TEXT, FieldType.TEXTAREA, FieldType.RICHTEXT, FieldType.URL, FieldType.EMAIL}


@dataclass(frozen=True)
class FieldError:
    field_id: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field_id, "message": self.message}


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def error_dicts(self) -> list[dict[str, str]]:
        return [e.to_dict() for e in self.errors]


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def _label(definition: dict) -> str:
    return definition.get("name") or definition["fieldId"]


# ============================================================================
# Per-type rules. Each returns an error message or None.
# ============================================================================


def _check_text(definition: dict, value: Any) -> str | None:
    text = value if isinstance(value, str) else str(value)
    label = _label(definition)

    min_length = definition.get("minLength")
    max_length = definition.get("maxLength")
    if min_length is not None and len(text) < min_length:
        return f"{label} must be at least {min_length} characters"
    if max_length is not None and len(text) > max_length:
        return f"{label} must be at most {max_length} characters"

    pattern = definition.get("pattern")
    if pattern:
        try:
            if re.fullmatch(pattern, text) is None:
                return f"{label} format is invalid"
        except re.error:
            return f"{label} has an invalid pattern"

    field_type = FieldType(definition["type"])
    if field_type == FieldType.EMAIL:
        try:
            _email_adapter.validate_python(text)
        except PydanticValidationError:
            return f"{label} is not a valid email"
    elif field_type == FieldType.URL:
        try:
            _url_adapter.validate_python(text)
        except PydanticValidationError:
            return f"{label} is not a valid URL"
    return None


def _check_number(definition: dict, value: Any) -> str | None:
    if isinstance(value, bool):
        return f"{_label(definition)} must be a number"
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return f"{_label(definition)} must be a finite number"
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return f"{_label(definition)} must be a number"
    else:
        return f"{_label(definition)} must be a number"
    if not math.isfinite(number):
        return f"{_label(definition)} must be a finite number"
    return None


def _check_boolean(definition: dict, value: Any) -> str | None:
    if not isinstance(value, bool):
        return f"{_label(definition)} must be true or false"
    return None


def _check_date(definition: dict, value: Any) -> str | None:
    if isinstance(value, (date, datetime)):
        return None
    if isinstance(value, str):
        candidate = value.strip()
        # fromisoformat rejects a trailing Z before 3.11
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            datetime.fromisoformat(candidate)
            return None
        except ValueError:
            pass
    return f"{_label(definition)} is not a valid date"


def _check_select(definition: dict, value: Any) -> str | None:
    options = definition.get("options") or []
    if value not in options:
        return f"{_label(definition)} must be one of: {', '.join(str(o) for o in options)}"
    return None


def _check_identifier(definition: dict, value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return f"{_label(definition)} must be an identifier"
    return None


def _check_json(definition: dict, value: Any) -> str | None:
    if isinstance(value, str):
        try:
            json.loads(value)
        except ValueError:
            return f"{_label(definition)} must be valid JSON"
        return None
    if isinstance(value, (dict, list, int, float, bool)):
        return None
    return f"{_label(definition)} must be valid JSON"


FIELD_RULES: dict[FieldType, Callable[[dict, Any], str | None]] = {
    FieldType.TEXT: _check_text,
    FieldType.TEXTAREA: _check_text,
    FieldType.RICHTEXT: _check_text,
    FieldType.URL: _check_text,
    FieldType.EMAIL: _check_text,
    FieldType.NUMBER: _check_number,
    FieldType.BOOLEAN: _check_boolean,
    FieldType.DATE: _check_date,
    FieldType.SELECT: _check_select,
    FieldType.REFERENCE: _check_identifier,
    FieldType.IMAGE: _check_identifier,
    FieldType.FILE: _check_identifier,
    FieldType.JSON: _check_json,
}


def validate_content(content_type, payload: dict | None) -> ValidationResult:
    """
    Validate ``payload`` against a content type.

    ``content_type`` may be a ContentType row or its list of field
    definitions. Errors accumulate across fields with at most one per
    field; keys not declared by the type are ignored.
    """
    definitions = getattr(content_type, "fields", content_type) or []
    payload = payload or {}
    result = ValidationResult()

    for definition in definitions:
        field_id = definition["fieldId"]
        value = payload.get(field_id)

        if is_empty(value):
            if definition.get("required"):
                result.errors.append(FieldError(field_id, f"{_label(definition)} is required"))
            continue

        try:
            rule = FIELD_RULES[FieldType(definition.get("type"))]
        except ValueError:
            result.errors.append(FieldError(field_id, f"{_label(definition)} has an unsupported type"))
            continue

        message = rule(definition, value)
        if message:
            result.errors.append(FieldError(field_id, message))

    return result


def prune_unknown_fields(content_type, payload: dict | None) -> dict:
    """Drop payload keys the content type does not declare."""
    definitions = getattr(content_type, "fields", content_type) or []
    known = {d["fieldId"] for d in definitions}
    return {k: v for k, v in (payload or {}).items() if k in known}


def validate_field_definitions(definitions: list[dict]) -> ValidationResult:
    """
    Check a content type's field list before it is stored.

    Rejects duplicate field ids, unknown types, ``options`` on non-select
    fields, select fields without options, patterns that do not compile and
    minLength greater than maxLength.
    """
    result = ValidationResult()
    seen: set[str] = set()

    for index, definition in enumerate(definitions):
        field_id = definition.get("fieldId") or ""
        ref = field_id or f"fields[{index}]"

        if not field_id:
            result.errors.append(FieldError(ref, "fieldId is required"))
            continue
        if field_id in seen:
            result.errors.append(FieldError(field_id, f"Duplicate fieldId '{field_id}'"))
            continue
        seen.add(field_id)

        try:
            field_type = FieldType(definition.get("type"))
        except ValueError:
            result.errors.append(FieldError(field_id, f"Invalid field type '{definition.get('type')}'"))
            continue

        options = definition.get("options")
        if field_type == FieldType.SELECT and not options:
            result.errors.append(FieldError(field_id, "Select fields need at least one option"))
            continue
        if field_type != FieldType.SELECT and options:
            result.errors.append(FieldError(field_id, "Only select fields may define options"))
            continue

        min_length = definition.get("minLength")
        max_length = definition.get("maxLength")
        if min_length is not None and max_length is not None and min_length > max_length:
            result.errors.append(FieldError(field_id, "minLength cannot exceed maxLength"))
            continue

        pattern = definition.get("pattern")
        if pattern:
            try:
                re.compile(pattern)
            except re.error:
                result.errors.append(FieldError(field_id, "pattern is not a valid regular expression"))

    return result
