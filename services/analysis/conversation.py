"""Follow-up questions against an analyzed product session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from models.session_models import ASSISTANT_ROLE, USER_ROLE, SessionMessage, SessionSummary
from services.analysis.enrich_stage import degraded_enrichment
from services.analysis.errors import (
    InvalidQuestionError,
    ResponseGenerationError,
    SessionNotFoundError,
)
from services.analysis.respond_stage import RespondStage
from services.session.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Session not found or expired. Please scan the product again."
EMPTY_QUESTION_MESSAGE = "Message is required and must be a non-empty string."


@dataclass(frozen=True)
class ConversationReply:
    answer: str
    suggested_questions: List[str]
    history: List[SessionMessage]


class ConversationService:
    """Answer questions about a session's product and keep its history."""

    def __init__(self, store: SessionStore, respond: RespondStage) -> None:
        self.store = store
        self.respond = respond

    async def ask(self, session_id: str, utterance: Optional[str]) -> ConversationReply:
        """Answer ``utterance`` using the session's artifacts and history.

        The question is recorded before the model is called; the answer only once
        the call succeeds.

        Raises:
            InvalidQuestionError: If the utterance is empty or whitespace.
            SessionNotFoundError: If the session is unknown, expired or deleted.
            ResponseGenerationError: If the model call fails.
        """
        question = utterance.strip() if isinstance(utterance, str) else ""
        if not question:
            raise InvalidQuestionError(EMPTY_QUESTION_MESSAGE)

        state = self.store.append_history(session_id, USER_ROLE, question)
        if state is None:
            raise SessionNotFoundError(SESSION_EXPIRED_MESSAGE)

        result = await self.respond.run(state.extraction, state.enrichment, state.history, question)
        if not result.ok:
            LOGGER.error("Follow-up failed for session %s: %s", session_id, result.raw_detail)
            raise ResponseGenerationError(result.reason, detail=result.raw_detail)

        answer = result.value
        updated = self.store.append_history(session_id, ASSISTANT_ROLE, answer.answer)
        history = list((updated or state).history)
        return ConversationReply(
            answer=answer.answer,
            suggested_questions=list(answer.suggested_questions),
            history=history,
        )

    def describe(self, session_id: str) -> Optional[SessionSummary]:
        """Return a short status view of the session, or None if it is gone."""
        state = self.store.get(session_id)
        if state is None:
            return None
        return SessionSummary(
            has_artifacts=True,
            has_enrichment=state.enrichment != degraded_enrichment(),
            message_count=len(state.history),
            product_name=state.extraction.product_name or "Unknown",
        )

    def delete(self, session_id: str) -> bool:
        return self.store.delete(session_id)
