"""Tagged outcome passed between analysis stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why a stage did not produce a value."""

    INVALID_INPUT = "invalid_input"
    INVOCATION = "invocation"
    PARSE = "parse"
    DECLARED_ERROR = "declared_error"


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Either ``ok`` with a value, or a failure with a kind, reason and raw detail."""

    ok: bool
    value: Optional[T] = None
    kind: Optional[FailureKind] = None
    reason: Optional[str] = None
    raw_detail: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: FailureKind, reason: str, raw_detail: Optional[str] = None) -> "StageResult[T]":
        return cls(ok=False, kind=kind, reason=reason, raw_detail=raw_detail)
