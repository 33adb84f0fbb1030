"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads content and builds the engine once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 409/400, KeyError → 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The server hosts a single conversation: one ``SessionState`` lives on
``app.state`` for the lifetime of the process.

The ``cli()`` function is the ``pathfinder-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from google import genai

from pathfinder.engine import ConversationEngine
from pathfinder.gateway import GeminiGateway
from pathfinder.interfaces import AudioOutput, CompletionGateway
from pathfinder.speech import SounddeviceOutput, SpeechPlayer
from pathfinder.store import ContentStore

from pathfinder_server.config import ServerSettings, load_settings
from pathfinder_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from pathfinder_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan (startup and shutdown)
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load YAML content into a ``ContentStore``
      2. Build the gateway (unless one was injected) and the speech player
      3. Build ``ConversationEngine`` and the single session
      4. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Stop any audio still playing
    """
    settings: ServerSettings = app.state.settings

    # --- Load content ---
    store = ContentStore(content_dir=settings.content_dir)
    store.load()

    # --- Gateway & audio ---
    gateway: CompletionGateway = app.state.gateway_override or GeminiGateway(
        genai.Client(api_key=settings.api_key)
    )
    output: Optional[AudioOutput] = app.state.audio_override
    if output is None and settings.sound:
        output = SounddeviceOutput()
        logger.info("Speech output enabled on the default audio device")
    speech = SpeechPlayer(gateway, output)

    # --- Engine & the one conversation ---
    engine = ConversationEngine(store, gateway, speech)
    session = engine.new_session()

    app.state.store = store
    app.state.engine = engine
    app.state.session = session

    yield

    # --- Shutdown ---
    speech.stop(session)
    logger.info("Speech output stopped")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    *,
    gateway: CompletionGateway | None = None,
    audio_output: AudioOutput | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    ``gateway`` and ``audio_output`` replace the Gemini gateway and the
    sounddevice output, e.g. in tests.
    """
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Pathfinder API Server",
        description="REST API for the PsyEgypt Career Pathfinder conversation",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan handler
    app.state.settings = settings
    app.state.gateway_override = gateway
    app.state.audio_override = audio_output

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — content loaded and engine ready."""
        ready = getattr(app.state, "engine", None) is not None
        return {"status": "ok" if ready else "starting"}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``pathfinder-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "pathfinder_server.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
