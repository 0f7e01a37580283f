"""Follow-up chat and session lifecycle handlers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from services.analysis.conversation import ConversationService
from services.analysis.errors import (
	InvalidQuestionError,
	ResponseGenerationError,
	SessionNotFoundError,
)


def _conversation(request: Request) -> ConversationService:
	return request.app.state.conversation_service


async def ask_question(request: Request, session_id: Optional[str], message: Optional[str]) -> Dict[str, Any]:
	"""Answer a follow-up question for the session named in the request header."""
	if not session_id:
		raise HTTPException(status_code=400, detail="Session ID is required in X-Session-ID header.")
	try:
		reply = await _conversation(request).ask(session_id, message)
	except InvalidQuestionError as exc:
		raise HTTPException(status_code=400, detail=exc.message) from exc
	except SessionNotFoundError as exc:
		raise HTTPException(status_code=404, detail=exc.message) from exc
	except ResponseGenerationError as exc:
		raise HTTPException(status_code=502, detail=exc.message) from exc
	return {
		"success": True,
		"response": reply.answer,
		"suggested_questions": reply.suggested_questions,
		"conversation_history": [entry.to_dict() for entry in reply.history],
	}


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return a status summary for a session."""
	summary = _conversation(request).describe(session_id)
	if summary is None:
		raise HTTPException(status_code=404, detail="Session not found or expired.")
	return {
		"success": True,
		"data": {
			"has_artifacts": summary.has_artifacts,
			"has_enrichment": summary.has_enrichment,
			"message_count": summary.message_count,
			"product_name": summary.product_name,
		},
	}


async def delete_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Delete a session and report whether it existed."""
	deleted = _conversation(request).delete(session_id)
	return {"success": deleted, "message": "Session deleted" if deleted else "Session not found"}
