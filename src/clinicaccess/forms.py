"""Typed clinical form fields.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

from .exceptions import ValidationError


class FieldKind(str, Enum):
    """The closed set of field kinds a form can contain."""

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    TIME = "time"


class FormField(BaseModel):
    id: str
    label: str
    kind: FieldKind
    required: bool = False
    options: list[str] = Field(default_factory=list)


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple)):
        return not raw
    return False


def _text(field: FormField, raw: Any) -> str:
    return str(raw).strip()


def _number(field: FormField, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValidationError(f"{field.label} must be a number", {"field": field.id})
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field.label} must be a number", {"field": field.id}) from e


def _choice(field: FormField, raw: Any) -> str:
    value = str(raw)
    if value not in field.options:
        raise ValidationError(
            f"{field.label} must be one of: {', '.join(field.options)}",
            {"field": field.id, "value": value},
        )
    return value


def _checkbox(field: FormField, raw: Any) -> bool | list[str]:
    if not field.options:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in {"true", "on", "yes", "1"}:
            return True
        if isinstance(raw, str) and raw.strip().lower() in {"false", "off", "no", "0"}:
            return False
        raise ValidationError(f"{field.label} must be checked or unchecked", {"field": field.id})
    if isinstance(raw, str):
        values = [raw]
    elif isinstance(raw, (list, tuple, set)):
        values = list(raw)
    else:
        raise ValidationError(
            f"{field.label} must be one of: {', '.join(field.options)}",
            {"field": field.id},
        )
    return [_choice(field, value) for value in values]


def _date(field: FormField, raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError as e:
        raise ValidationError(
            f"{field.label} must be a date (YYYY-MM-DD)", {"field": field.id}
        ) from e


def _time(field: FormField, raw: Any) -> time:
    if isinstance(raw, time):
        return raw
    try:
        return datetime.strptime(str(raw).strip(), "%H:%M").time()
    except ValueError as e:
        raise ValidationError(
            f"{field.label} must be a time (HH:MM)", {"field": field.id}
        ) from e


PARSERS: dict[FieldKind, Callable[[FormField, Any], Any]] = {
    FieldKind.TEXT: _text,
    FieldKind.NUMBER: _number,
    FieldKind.SELECT: _choice,
    FieldKind.RADIO: _choice,
    FieldKind.CHECKBOX: _checkbox,
    FieldKind.DATE: _date,
    FieldKind.TIME: _time,
}

_missing = set(FieldKind) - set(PARSERS)
if _missing:
    raise RuntimeError(f"No parser for field kinds: {sorted(k.value for k in _missing)}")


def parse_field_value(field: FormField, raw: Any) -> Any:
    """Convert raw input for ``field`` into its typed value.

    Blank input yields None for optional fields.

    Raises:
        ValidationError: If the field is required and blank, or the input is invalid.

    """
    if _is_blank(raw):
        if field.required:
            raise ValidationError(f"{field.label} is required", {"field": field.id})
        return None
    return PARSERS[field.kind](field, raw)


def parse_form(fields: list[FormField], values: dict[str, Any]) -> dict[str, Any]:
    """Parse every field, collecting all problems before raising.

    Raises:
        ValidationError: With ``details`` mapping field id to message.

    """
    parsed: dict[str, Any] = {}
    problems: dict[str, str] = {}
    for field in fields:
        try:
            parsed[field.id] = parse_field_value(field, values.get(field.id))
        except ValidationError as e:
            problems[field.id] = e.message
    if problems:
        raise ValidationError("Please correct the highlighted fields", problems)
    return parsed
