"""Environment-driven settings for the label assistant."""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from services.analysis.enrich_stage import DEFAULT_INGREDIENT_LIMIT
from services.analysis.extract_stage import SUPPORTED_IMAGE_TYPES
from services.openai.reasoning_client import DEFAULT_MODEL
from services.session.session_store import DEFAULT_HISTORY_LIMIT, DEFAULT_TTL_SECONDS
from services.session.session_sweeper import DEFAULT_SWEEP_INTERVAL_SECONDS

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer.") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be a positive integer, got {value}.")
    return value


@dataclass(frozen=True)
class Settings:
    """Tunable limits and integration settings.

    Attributes:
        openai_model: Model used for every reasoning stage.
        session_ttl_seconds: Idle time after which a session expires.
        sweep_interval_seconds: Seconds between expiry sweeps.
        history_limit: Maximum messages kept per session.
        enrichment_ingredient_limit: Ingredients named in the enrichment prompt.
        max_upload_bytes: Largest accepted image upload.
        allowed_media_types: Image content types accepted for analysis.
        cors_origin: Allowed CORS origin (``*`` for any).
        log_level: Root logging level.
    """

    openai_model: str = DEFAULT_MODEL
    session_ttl_seconds: int = DEFAULT_TTL_SECONDS
    sweep_interval_seconds: int = DEFAULT_SWEEP_INTERVAL_SECONDS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    enrichment_ingredient_limit: int = DEFAULT_INGREDIENT_LIMIT
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_media_types: FrozenSet[str] = field(default_factory=lambda: SUPPORTED_IMAGE_TYPES)
    cors_origin: str = "*"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from ``env`` (defaults to ``os.environ``).

        Raises:
            RuntimeError: If a numeric setting is not a positive integer.
        """
        env = os.environ if env is None else env
        return cls(
            openai_model=env.get("OPENAI_MODEL") or DEFAULT_MODEL,
            session_ttl_seconds=_int_setting(env, "SESSION_TTL_SECONDS", DEFAULT_TTL_SECONDS),
            sweep_interval_seconds=_int_setting(
                env, "SESSION_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS
            ),
            history_limit=_int_setting(env, "SESSION_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
            enrichment_ingredient_limit=_int_setting(
                env, "ENRICHMENT_INGREDIENT_LIMIT", DEFAULT_INGREDIENT_LIMIT
            ),
            max_upload_bytes=_int_setting(env, "MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            cors_origin=env.get("CORS_ORIGIN") or "*",
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
