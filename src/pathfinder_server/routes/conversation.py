"""Conversation endpoints — language selection, messages, choices, restart.

Every mutating endpoint returns the turns it appended together with the
updated conversation snapshot, so a client can render incrementally or
re-render from scratch.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pathfinder.engine import ConversationEngine
from pathfinder.models.session import (
    ChoiceSignal,
    Language,
    SessionSnapshot,
    SessionState,
    TextSignal,
)
from pathfinder.models.transcript import Turn

from pathfinder_server.dependencies import get_engine, get_session

router = APIRouter(prefix="/conversation", tags=["conversation"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class SelectLanguageRequest(BaseModel):
    """Body for POST /conversation/language."""
    language: Language


class MessageRequest(BaseModel):
    """Body for POST /conversation/messages."""
    text: str


class ChoiceRequest(BaseModel):
    """Body for POST /conversation/choices."""
    turn_id: int
    option_index: int = Field(ge=0)


class ConversationUpdate(BaseModel):
    """Turns appended by one request plus the resulting conversation."""
    turns: list[Turn]
    conversation: SessionSnapshot


def _update(turns: list[Turn], session: SessionState) -> ConversationUpdate:
    return ConversationUpdate(turns=turns, conversation=SessionSnapshot.of(session))


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
def get_conversation(
    session: SessionState = Depends(get_session),
) -> SessionSnapshot:
    """Current state, language, audio status and the full transcript."""
    return SessionSnapshot.of(session)


@router.post("/language")
async def select_language(
    body: SelectLanguageRequest,
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> ConversationUpdate:
    """Start the conversation in the chosen language.

    Raises 409 if a language was already selected.
    """
    turns = engine.select_language(session, body.language)
    return _update(turns, session)


@router.post("/messages")
async def send_message(
    body: MessageRequest,
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> ConversationUpdate:
    """Submit typed text.

    Returns no turns when the text does not apply to the current state or
    another request is still waiting on the model.  Raises 409 before a
    language is selected.
    """
    turns = await engine.handle(session, TextSignal(text=body.text))
    return _update(turns, session)


@router.post("/choices")
async def choose_option(
    body: ChoiceRequest,
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> ConversationUpdate:
    """Activate option ``option_index`` on turn ``turn_id``."""
    signal = ChoiceSignal(turn_id=body.turn_id, option_index=body.option_index)
    turns = await engine.handle(session, signal)
    return _update(turns, session)


@router.post("/restart")
async def restart(
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> SessionSnapshot:
    """Discard the conversation and return to language selection."""
    engine.restart(session)
    return SessionSnapshot.of(session)
