import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from routes.analysis_route import router as analysis_router
from routes.session_route import router as session_router
from services.analysis.conversation import ConversationService
from services.analysis.enrich_stage import EnrichStage
from services.analysis.extract_stage import ExtractStage
from services.analysis.pipeline import AnalysisPipeline
from services.analysis.respond_stage import RespondStage
from services.analysis.summarize_stage import SummarizeStage
from services.openai.reasoning_client import ReasoningClient
from services.session.session_store import InMemorySessionStore
from services.session.session_sweeper import SessionSweeper
from utils.settings import Settings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def attach_services(app: FastAPI, reasoning_client: ReasoningClient) -> None:
    """Build the session store, pipeline and conversation service on `app.state`."""
    settings: Settings = app.state.settings
    store = InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        history_limit=settings.history_limit,
    )
    app.state.session_store = store
    app.state.analysis_pipeline = AnalysisPipeline(
        store,
        ExtractStage(reasoning_client, settings.allowed_media_types),
        EnrichStage(reasoning_client, settings.enrichment_ingredient_limit),
        SummarizeStage(reasoning_client),
    )
    app.state.conversation_service = ConversationService(store, RespondStage(reasoning_client))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the OpenAI async client and the analysis services built on it
      - the background task that sweeps expired sessions
    and attach them to `app.state`.
    """
    settings: Settings = app.state.settings

    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    attach_services(app, ReasoningClient(openai_client, model=settings.openai_model))

    sweeper = SessionSweeper(app.state.session_store, interval_seconds=settings.sweep_interval_seconds)
    sweep_task = asyncio.create_task(sweeper.run_periodic_sweep())
    app.state.sweep_task = sweep_task

    try:
        yield
    finally:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task

        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    result = aclose()
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    LOGGER.warning("Error while closing OpenAI client: %s", exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Food Label Assistant", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=settings.cors_origin != "*",
        allow_methods=["GET", "POST", "OPTIONS", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Session-ID"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        LOGGER.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.get("/health")
    async def health(request: Request):
        """
        Health check reporting OpenAI client presence and session statistics.
        """
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "openai_available": has_openai,
            "sessions": store.stats() if store is not None else None,
        }

    # Register application routers
    app.include_router(analysis_router)
    app.include_router(session_router)

    return app


app = create_app()
