"""FastAPI dependency injection — provides the engine, store and session.

All three are created once by the lifespan handler and stashed on
``app.state``.  The server hosts exactly one conversation.
"""

from fastapi import Request

from pathfinder.engine import ConversationEngine
from pathfinder.models.session import SessionState
from pathfinder.store import ContentStore


def get_engine(request: Request) -> ConversationEngine:
    """Return the engine singleton from ``app.state``."""
    return request.app.state.engine


def get_store(request: Request) -> ContentStore:
    """Return the ContentStore singleton from ``app.state``."""
    return request.app.state.store


def get_session(request: Request) -> SessionState:
    """Return the conversation hosted by this server."""
    return request.app.state.session
