"""FastAPI routes for follow-up chat and session management."""

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from controllers.session_controller import ask_question, delete_session, get_session

router = APIRouter(prefix="/api")


class ChatPayload(BaseModel):
	message: Optional[str] = None


@router.post("/chat")
async def post_chat_route(
	request: Request,
	payload: ChatPayload,
	x_session_id: Optional[str] = Header(None),
):
	try:
		return await ask_question(request, x_session_id, payload.message)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to process message.") from exc


@router.get("/session/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/session/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		return await delete_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
