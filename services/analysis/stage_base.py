"""Shared plumbing for the reasoning stages."""

from __future__ import annotations

import logging
import time
from typing import Optional

from models.stage_result import FailureKind, StageResult
from services.openai.reasoning_client import ReasoningClient

LOGGER = logging.getLogger(__name__)


class ReasoningStage:
    """Base class for a stage that makes exactly one reasoning call."""

    name = "stage"
    max_output_tokens = 1000

    def __init__(self, capability: ReasoningClient) -> None:
        if capability is None:
            raise ValueError("A reasoning client is required.")
        self.capability = capability

    async def _invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> StageResult[str]:
        """Call the capability once and fold any exception into a failed result."""
        start = time.time()
        try:
            text = await self.capability.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                image_bytes=image_bytes,
                mime_type=mime_type,
                max_output_tokens=self.max_output_tokens,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("%s stage call failed: %s", self.name, exc)
            return StageResult.failure(
                FailureKind.INVOCATION, f"The {self.name} request failed.", raw_detail=str(exc)
            )
        LOGGER.info("%s stage latency: %.3fs", self.name, time.time() - start)
        return StageResult.success(text)
