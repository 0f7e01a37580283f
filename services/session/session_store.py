"""Session storage for analyzed products and their follow-up conversations."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from models.label_artifacts import ProductEnrichment, ProductExtraction, ProductSummary
from models.session_models import MESSAGE_ROLES, SessionMessage, SessionState

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_HISTORY_LIMIT = 10


class SessionStore(ABC):
	"""Interface the pipeline and conversation services depend on."""

	@abstractmethod
	def create(
		self,
		extraction: ProductExtraction,
		enrichment: ProductEnrichment,
		summary: ProductSummary,
	) -> SessionState:
		"""Register a session holding all three finished artifacts."""

	@abstractmethod
	def get(self, session_id: str) -> Optional[SessionState]:
		"""Return the live session and refresh its access time, or None."""

	@abstractmethod
	def append_history(self, session_id: str, role: str, content: str) -> Optional[SessionState]:
		"""Append one message, evicting the oldest beyond the cap, or return None."""

	@abstractmethod
	def delete(self, session_id: str) -> bool:
		"""Remove a session; return whether it existed."""

	@abstractmethod
	def sweep(self) -> int:
		"""Delete expired sessions and return how many were removed."""

	@abstractmethod
	def stats(self) -> Dict[str, Any]:
		"""Return a diagnostic snapshot of the stored sessions."""


class InMemorySessionStore(SessionStore):
	"""Process-local store with sliding expiry and a bounded history per session.

	Every update replaces the stored ``SessionState`` with a new instance, so a
	reader holding a state never sees it change underneath it.
	"""

	def __init__(
		self,
		ttl_seconds: float = DEFAULT_TTL_SECONDS,
		history_limit: int = DEFAULT_HISTORY_LIMIT,
		clock: Callable[[], float] = time.time,
	) -> None:
		if history_limit < 1:
			raise ValueError("history_limit must be at least 1.")
		self.ttl_seconds = ttl_seconds
		self.history_limit = history_limit
		self._clock = clock
		self._sessions: Dict[str, SessionState] = {}

	def __len__(self) -> int:
		return len(self._sessions)

	def create(
		self,
		extraction: ProductExtraction,
		enrichment: ProductEnrichment,
		summary: ProductSummary,
	) -> SessionState:
		now = self._clock()
		state = SessionState(
			session_id=uuid4().hex,
			extraction=extraction,
			enrichment=enrichment,
			summary=summary,
			created_at=now,
			last_accessed_at=now,
		)
		self._sessions[state.session_id] = state
		LOGGER.info("Session %s created", state.session_id)
		return state

	def get(self, session_id: str) -> Optional[SessionState]:
		state = self._live(session_id)
		if state is None:
			return None
		state = replace(state, last_accessed_at=self._clock())
		self._sessions[session_id] = state
		return state

	def append_history(self, session_id: str, role: str, content: str) -> Optional[SessionState]:
		if role not in MESSAGE_ROLES:
			raise ValueError(f"Unsupported message role: {role!r}")
		state = self._live(session_id)
		if state is None:
			return None
		now = self._clock()
		message = SessionMessage(role=role, content=content, created_at=now)
		history = (state.history + (message,))[-self.history_limit:]
		state = replace(state, history=history, last_accessed_at=now)
		self._sessions[session_id] = state
		return state

	def delete(self, session_id: str) -> bool:
		deleted = self._sessions.pop(session_id, None) is not None
		if deleted:
			LOGGER.info("Session %s deleted", session_id)
		return deleted

	def sweep(self) -> int:
		now = self._clock()
		removed = 0
		for session_id in list(self._sessions):
			state = self._sessions.get(session_id)
			if state is not None and self._is_expired(state, now):
				self._sessions.pop(session_id, None)
				LOGGER.info("Session %s expired and removed", session_id)
				removed += 1
		return removed

	def stats(self) -> Dict[str, Any]:
		sessions = list(self._sessions.values())
		return {
			"total_sessions": len(sessions),
			"sessions": [
				{
					"id": state.session_id,
					"created_at": _iso(state.created_at),
					"last_accessed_at": _iso(state.last_accessed_at),
					"message_count": len(state.history),
				}
				for state in sessions
			],
		}

	def _live(self, session_id: str) -> Optional[SessionState]:
		"""Return the stored state unless it is missing or past its TTL."""
		state = self._sessions.get(session_id)
		if state is None:
			return None
		if self._is_expired(state, self._clock()):
			self._sessions.pop(session_id, None)
			LOGGER.info("Session %s expired on access", session_id)
			return None
		return state

	def _is_expired(self, state: SessionState, now: float) -> bool:
		return now - state.last_accessed_at > self.ttl_seconds


def _iso(timestamp: float) -> str:
	return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
