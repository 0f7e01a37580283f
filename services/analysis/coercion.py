"""Turn free-form model replies into validated artifacts."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from models.stage_result import FailureKind, StageResult

LOGGER = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


class ParseFallback(str, Enum):
    """What to do when a reply does not decode into the expected shape."""

    FAIL = "fail"
    PLAIN_TEXT = "plain_text"


@dataclass(frozen=True)
class PlainText:
    """A reply accepted verbatim because it was not structured."""

    text: str


def strip_code_fence(text: str) -> str:
    """Remove a leading ```/```json fence line and a trailing ``` fence."""
    cleaned = (text or "").strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _flag_is_set(value: Any) -> bool:
    # models sometimes send "true" or 1 for a boolean flag
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false", "0", "no")
    return bool(value)


def _declared_error(
    payload: dict, error_flag: Optional[str], error_field: Optional[str]
) -> Optional[str]:
    """Return the model's own error message when the payload flags itself as an error."""
    message = payload.get(error_field) if error_field else None
    if isinstance(message, str):
        message = message.strip()
    flagged = bool(error_flag and _flag_is_set(payload.get(error_flag)))
    if flagged or message:
        return message if isinstance(message, str) and message else ""
    return None


def coerce_output(
    raw_text: str,
    shape: Type[BaseModel],
    *,
    fallback: ParseFallback = ParseFallback.FAIL,
    error_flag: Optional[str] = None,
    error_field: Optional[str] = None,
) -> StageResult[Any]:
    """Parse ``raw_text`` into ``shape``.

    Args:
        raw_text: Text returned by the reasoning model.
        shape: Pydantic model the decoded object must satisfy.
        fallback: ``FAIL`` returns a parse failure; ``PLAIN_TEXT`` returns the
            cleaned text wrapped in :class:`PlainText`.
        error_flag: Key of a boolean the model sets when it cannot do the task.
        error_field: Key of a message the model fills when it cannot do the task.

    Returns:
        A successful result holding a ``shape`` instance (or ``PlainText``), a
        ``DECLARED_ERROR`` failure, or a ``PARSE`` failure.
    """
    cleaned = strip_code_fence(raw_text)

    try:
        payload = json.loads(cleaned)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}.")
    except ValueError as exc:
        return _parse_failure(cleaned, fallback, f"Reply is not a JSON object: {exc}")

    declared = _declared_error(payload, error_flag, error_field)
    if declared is not None:
        return StageResult.failure(FailureKind.DECLARED_ERROR, declared, raw_detail=cleaned)

    try:
        return StageResult.success(shape.model_validate(payload))
    except ValidationError as exc:
        return _parse_failure(
            cleaned, fallback, f"Reply does not match {shape.__name__}: {exc.error_count()} error(s)"
        )


def _parse_failure(cleaned: str, fallback: ParseFallback, reason: str) -> StageResult[Any]:
    if fallback is ParseFallback.PLAIN_TEXT and cleaned:
        LOGGER.info("Using unstructured reply as plain text (%s)", reason)
        return StageResult.success(PlainText(cleaned))
    return StageResult.failure(FailureKind.PARSE, reason, raw_detail=cleaned)
