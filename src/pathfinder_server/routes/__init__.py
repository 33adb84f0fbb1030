"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from pathfinder_server.routes.conversation import router as conversation_router
from pathfinder_server.routes.reference import router as reference_router
from pathfinder_server.routes.speech import router as speech_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(conversation_router, prefix=API_PREFIX)
    app.include_router(speech_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
