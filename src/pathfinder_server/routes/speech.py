"""Speech endpoints — per-turn playback toggle and the global sound switch.

Playback happens on the server's audio device (``SERVER_SOUND=true``); with
sound output unavailable both endpoints still succeed and report the
unchanged playback state.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pathfinder.engine import ConversationEngine
from pathfinder.models.session import AudioPlayback, SessionSnapshot, SessionState

from pathfinder_server.dependencies import get_engine, get_session

router = APIRouter(prefix="/conversation", tags=["speech"])


class SoundRequest(BaseModel):
    """Body for PUT /conversation/sound."""
    enabled: bool


@router.post("/turns/{turn_id}/speech")
async def toggle_speech(
    turn_id: int,
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> AudioPlayback:
    """Play, pause or resume the speech for one system turn.

    Raises 404 for an unknown turn and 400 for a user turn.
    """
    return await engine.toggle_speech(session, turn_id)


@router.put("/sound")
async def set_sound(
    body: SoundRequest,
    engine: ConversationEngine = Depends(get_engine),
    session: SessionState = Depends(get_session),
) -> SessionSnapshot:
    """Enable or disable speech; disabling stops any playback."""
    engine.set_sound_enabled(session, body.enabled)
    return SessionSnapshot.of(session)
