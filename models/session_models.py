"""Session domain models for label conversations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Tuple

from models.label_artifacts import ProductEnrichment, ProductExtraction, ProductSummary

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
MESSAGE_ROLES = (USER_ROLE, ASSISTANT_ROLE)


@dataclass(frozen=True)
class SessionMessage:
	"""One side of a follow-up exchange."""

	role: str
	content: str
	created_at: float = field(default_factory=lambda: time.time())

	def to_dict(self) -> dict:
		return {"role": self.role, "content": self.content, "timestamp": self.created_at}


@dataclass(frozen=True)
class SessionState:
	"""Artifacts and bounded conversation for one analyzed product.

	Instances are never mutated; the store swaps in a new state on every update.
	"""

	session_id: str
	extraction: ProductExtraction
	enrichment: ProductEnrichment
	summary: ProductSummary
	history: Tuple[SessionMessage, ...] = ()
	created_at: float = field(default_factory=lambda: time.time())
	last_accessed_at: float = field(default_factory=lambda: time.time())


@dataclass(frozen=True)
class SessionSummary:
	"""Lightweight view of a session for status checks."""

	has_artifacts: bool
	has_enrichment: bool
	message_count: int
	product_name: str
