"""
Edit boundary for search options.

Raw values typed by a user are checked here before they can reach a
SearchOptions value. Numeric fields are clamped into range; anything that
is not a number is rejected.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from rgpanel.exceptions import ValidationError
from rgpanel.models.search import (
    MAX_CONTEXT_LINES,
    MAX_MAX_DEPTH,
    MIN_CONTEXT_LINES,
    MIN_MAX_DEPTH,
    SearchOptions,
)

logger = logging.getLogger(__name__)

BOUNDED_FIELDS: dict[str, tuple[int, int]] = {
    "max_depth": (MIN_MAX_DEPTH, MAX_MAX_DEPTH),
    "context_lines": (MIN_CONTEXT_LINES, MAX_CONTEXT_LINES),
}
BOOL_FIELDS = frozenset({"case_sensitive", "search_hidden", "regex"})
LIST_FIELDS = frozenset({"include_globs", "exclude_globs"})
TEXT_FIELDS = frozenset({"pattern", "directory", "file_type"})

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def clamp(value: int, low: int, high: int) -> int:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def parse_bounded_int(raw: object, low: int, high: int, field: str) -> int:
    """
    Parse a user-entered integer and clamp it into range.

    Args:
        raw: int or numeric string
        low: Smallest allowed value
        high: Largest allowed value
        field: Option name, used for error context

    Returns:
        The parsed value clamped to [low, high]

    Raises:
        ValidationError: If raw is not an integer or integer string
    """
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            value = None
    else:
        value = None

    if value is None:
        msg = f"{field} must be a whole number"
        raise ValidationError(msg, context={"field": field, "value": repr(raw)})

    clamped = clamp(value, low, high)
    if clamped != value:
        logger.debug(
            "Option value clamped",
            extra={"field": field, "value": value, "clamped": clamped},
        )
    return clamped


def _parse_bool(raw: object, field: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    msg = f"{field} must be true or false"
    raise ValidationError(msg, context={"field": field, "value": repr(raw)})


def _parse_globs(raw: object, field: str) -> list[str]:
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        items = raw
    else:
        msg = f"{field} must be a list of globs or a comma-separated string"
        raise ValidationError(msg, context={"field": field})
    return [item.strip() for item in items if item.strip()]


def _parse_text(raw: object, field: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        msg = f"{field} must be text"
        raise ValidationError(msg, context={"field": field, "value": repr(raw)})
    return raw


def apply_option_edit(options: SearchOptions, field: str, raw: object) -> SearchOptions:
    """
    Return a copy of options with one field replaced by a user-entered value.

    Raises:
        ValidationError: If the field is unknown or the value is unusable
    """
    if field in BOUNDED_FIELDS:
        low, high = BOUNDED_FIELDS[field]
        value: object = parse_bounded_int(raw, low, high, field)
    elif field in BOOL_FIELDS:
        value = _parse_bool(raw, field)
    elif field in LIST_FIELDS:
        value = _parse_globs(raw, field)
    elif field in TEXT_FIELDS:
        value = _parse_text(raw, field)
    else:
        msg = f"Unknown search option: {field}"
        raise ValidationError(msg, context={"field": field})

    try:
        return SearchOptions(**{**options.model_dump(), field: value})
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid value for {field}",
            context={"field": field, "detail": str(exc)},
        ) from exc
