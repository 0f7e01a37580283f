"""Stage 4: answer a follow-up question about an analyzed product."""

from __future__ import annotations

import json
import logging
from typing import Optional, Sequence

from models.label_artifacts import FollowUpAnswer, ProductEnrichment, ProductExtraction
from models.session_models import SessionMessage
from models.stage_result import FailureKind, StageResult
from services.analysis.coercion import ParseFallback, PlainText, coerce_output, strip_code_fence
from services.analysis.prompts import FOLLOW_UP_SYSTEM_PROMPT, follow_up_user_prompt
from services.analysis.stage_base import ReasoningStage

LOGGER = logging.getLogger(__name__)

GENERIC_SUGGESTED_QUESTIONS = (
    "What are the main ingredients?",
    "Is this product healthy?",
    "What are the allergens?",
)
ANSWER_FAILED_MESSAGE = "Failed to process follow-up question."


class RespondStage(ReasoningStage):
    """Ground a question in the stored artifacts and conversation history."""

    name = "respond"
    max_output_tokens = 800

    async def run(
        self,
        extraction: ProductExtraction,
        enrichment: ProductEnrichment,
        history: Sequence[SessionMessage],
        question: str,
    ) -> StageResult[FollowUpAnswer]:
        prompt = follow_up_user_prompt(
            extraction.to_prompt_json(),
            enrichment.to_prompt_json(),
            [message.to_dict() for message in history],
            question,
        )
        reply = await self._invoke(FOLLOW_UP_SYSTEM_PROMPT, prompt)
        if not reply.ok:
            return StageResult.failure(FailureKind.INVOCATION, ANSWER_FAILED_MESSAGE, reply.raw_detail)

        result = coerce_output(reply.value, FollowUpAnswer, fallback=ParseFallback.PLAIN_TEXT)
        if not result.ok:
            # PLAIN_TEXT only fails on an empty reply
            return StageResult.failure(FailureKind.PARSE, ANSWER_FAILED_MESSAGE, result.raw_detail)
        if isinstance(result.value, PlainText):
            return StageResult.success(
                FollowUpAnswer(
                    answer=_decoded_answer(result.value.text) or result.value.text,
                    suggested_questions=list(GENERIC_SUGGESTED_QUESTIONS),
                )
            )
        return result


def _decoded_answer(text: str) -> Optional[str]:
    """Pull the answer out of a JSON reply whose other fields did not validate."""
    try:
        payload = json.loads(strip_code_fence(text))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    answer = payload.get("answer")
    if isinstance(answer, str) and answer.strip():
        return answer.strip()
    return None
