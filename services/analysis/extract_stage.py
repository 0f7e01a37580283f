"""Stage 1: read product identity, ingredients and nutrition off the label image."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from models.label_artifacts import ProductExtraction
from models.stage_result import FailureKind, StageResult
from services.analysis.coercion import ParseFallback, coerce_output
from services.analysis.prompts import EXTRACTION_SYSTEM_PROMPT, EXTRACTION_USER_PROMPT
from services.analysis.stage_base import ReasoningStage
from services.openai.reasoning_client import ReasoningClient

LOGGER = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
NOT_A_LABEL_MESSAGE = "Image not recognized as a food label. Please upload a clear photo of the label."
EXTRACTION_FAILED_MESSAGE = "Failed to analyze image."


def normalize_media_type(media_type: Optional[str]) -> str:
    """Lower-case a content type and drop any parameters after ``;``."""
    return (media_type or "").split(";", 1)[0].strip().lower()


class ExtractStage(ReasoningStage):
    """Validate the upload and extract a :class:`ProductExtraction` from it."""

    name = "extract"
    max_output_tokens = 1500

    def __init__(
        self, capability: ReasoningClient, allowed_media_types: Optional[Iterable[str]] = None
    ) -> None:
        super().__init__(capability)
        self.allowed_media_types = frozenset(
            normalize_media_type(item) for item in (allowed_media_types or SUPPORTED_IMAGE_TYPES)
        )

    async def run(self, image_bytes: bytes, media_type: str) -> StageResult[ProductExtraction]:
        media_type = normalize_media_type(media_type)
        if media_type not in self.allowed_media_types:
            return StageResult.failure(
                FailureKind.INVALID_INPUT,
                f"Unsupported image type: {media_type or 'unknown'}.",
            )
        if not image_bytes:
            return StageResult.failure(FailureKind.INVALID_INPUT, "Uploaded image is empty.")

        LOGGER.info("Analyzing %s image (%d bytes)", media_type, len(image_bytes))
        reply = await self._invoke(
            EXTRACTION_SYSTEM_PROMPT,
            EXTRACTION_USER_PROMPT,
            image_bytes=image_bytes,
            mime_type=media_type,
        )
        if not reply.ok:
            return StageResult.failure(FailureKind.INVOCATION, EXTRACTION_FAILED_MESSAGE, reply.raw_detail)

        result = coerce_output(
            reply.value,
            ProductExtraction,
            fallback=ParseFallback.FAIL,
            error_flag="isError",
            error_field="error",
        )
        if result.kind is FailureKind.DECLARED_ERROR:
            LOGGER.info("Model declined the image: %s", result.reason or "no reason given")
            return StageResult.failure(FailureKind.DECLARED_ERROR, NOT_A_LABEL_MESSAGE, result.reason)
        if not result.ok:
            LOGGER.error("Could not parse extraction reply: %s", result.reason)
            return StageResult.failure(FailureKind.PARSE, EXTRACTION_FAILED_MESSAGE, result.raw_detail)
        return result
