"""pathfinder — PsyEgypt Career Pathfinder conversation SDK.

Public API:
    ConversationEngine — state machine driving one conversation per session
    ContentStore       — loads the YAML flow graph, strings and quizzes
    SessionState       — mutable record of one conversation
    SessionSnapshot    — public view of a session
    TextSignal         — signal: typed text
    ChoiceSignal       — signal: option activated on a transcript turn
    Turn               — one transcript entry

Boundaries:
    CompletionGateway  — ABC for the remote model (greeting, chat, analysis, TTS)
    GeminiGateway      — CompletionGateway over the Google GenAI SDK
    AudioOutput        — ABC for the speech output device
    SpeechPlayer       — per-session play / pause / resume / switch logic
    PromptManager      — Jinja2 prompt renderer

Errors:
    GatewayError           — a remote call failed
    MissingCredentialError — no API key in the environment
"""

from pathfinder.engine import ConversationEngine
from pathfinder.errors import GatewayError, MissingCredentialError, PathfinderError
from pathfinder.gateway import GeminiGateway
from pathfinder.interfaces import AudioOutput, CompletionGateway
from pathfinder.models.session import (
    ChoiceSignal,
    ConversationState,
    SessionSnapshot,
    SessionState,
    TextSignal,
)
from pathfinder.models.transcript import Option, Turn
from pathfinder.prompt import PromptManager
from pathfinder.speech import SounddeviceOutput, SpeechPlayer
from pathfinder.store import ContentStore

__all__ = [
    # Engine & store
    "ConversationEngine",
    "ContentStore",
    "PromptManager",
    # Session / signal
    "ChoiceSignal",
    "ConversationState",
    "Option",
    "SessionSnapshot",
    "SessionState",
    "TextSignal",
    "Turn",
    # Boundaries
    "AudioOutput",
    "CompletionGateway",
    "GeminiGateway",
    "SounddeviceOutput",
    "SpeechPlayer",
    # Errors
    "GatewayError",
    "MissingCredentialError",
    "PathfinderError",
]
