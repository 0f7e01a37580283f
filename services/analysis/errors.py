"""Errors raised by the label analysis and conversation services."""

from __future__ import annotations

from typing import Optional


class LabelAssistantError(Exception):
    """Base error carrying a stable, user-readable message."""

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidImageError(LabelAssistantError, ValueError):
    """The upload is empty or not an accepted image type."""


class InvalidQuestionError(LabelAssistantError, ValueError):
    """The follow-up question is empty."""


class ExtractionFailedError(LabelAssistantError):
    """The label could not be read, so no session was created."""


class SessionNotFoundError(LabelAssistantError):
    """The session id is unknown, expired, or was deleted."""


class ResponseGenerationError(LabelAssistantError):
    """The model call for a follow-up answer failed."""


class ExtractionUnavailableError(ExtractionFailedError):
    """The model call for extraction failed, so the label was never read."""
