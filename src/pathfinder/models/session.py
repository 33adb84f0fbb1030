"""Session and signal models — the contract between the engine and clients.

``SessionState`` is the single mutable record of one conversation.  It is
owned by whoever drives the conversation (the HTTP app, the console client,
a test) and passed explicitly into every engine call; the engine itself
keeps no per-conversation state.

Signals:
  - TextSignal: free-form text typed by the user
  - ChoiceSignal: activation of option ``option_index`` on turn ``turn_id``

The ``Signal`` union covers both cases so callers can dispatch on ``kind``.
"""

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from pathfinder.models.action import Category, FreeTextMode, QuizKind
from pathfinder.models.transcript import Turn

Language = Literal["en", "ar"]


class ConversationState(str, enum.Enum):
    """Discrete states of the conversation controller.

    Transitions:
        unstarted -> awaiting_opening_input  (language selected)
        awaiting_opening_input -> menu       (greeting answered, or "explore first")
        menu -> career_quiz | skills_quiz    (quiz started)
        career_quiz | skills_quiz -> menu    (result shown)
        menu -> free_chat | deep_analysis    (mode entered)
        any started state -> ended           (end chat)
        any state -> unstarted               (restart)
    """

    UNSTARTED = "unstarted"
    AWAITING_OPENING_INPUT = "awaiting_opening_input"
    MENU = "menu"
    CAREER_QUIZ = "career_quiz"
    SKILLS_QUIZ = "skills_quiz"
    FREE_CHAT = "free_chat"
    DEEP_ANALYSIS = "deep_analysis"
    ENDED = "ended"


# States in which typed text is accepted.
TEXT_STATES: frozenset[ConversationState] = frozenset({
    ConversationState.AWAITING_OPENING_INPUT,
    ConversationState.FREE_CHAT,
    ConversationState.DEEP_ANALYSIS,
})


class QuizTallies(BaseModel):
    """Per-category answer counters for the active quiz."""

    clinical: int = Field(default=0, ge=0)
    academic: int = Field(default=0, ge=0)
    professional: int = Field(default=0, ge=0)
    research: int = Field(default=0, ge=0)

    def increment(self, category: Category) -> None:
        setattr(self, category, getattr(self, category) + 1)

    def reset(self) -> None:
        self.clinical = self.academic = self.professional = self.research = 0


class ExchangeEntry(BaseModel):
    """One role-tagged message of the free-chat exchange log."""

    role: Literal["user", "model"]
    text: str


class AudioPlayback(BaseModel):
    """Which turn's speech is loaded on the audio output, if any."""

    turn_id: Optional[int] = None
    status: Literal["playing", "paused"] = "paused"


class PendingRetry(BaseModel):
    """The free-text operation that failed last, kept for the retry option."""

    state: ConversationState
    text: str


class SessionState(BaseModel):
    """The complete mutable record of one conversation."""

    # Incremented on every restart; gateway responses carrying an older
    # generation are discarded.
    generation: int = 0
    language: Optional[Language] = None
    state: ConversationState = ConversationState.UNSTARTED

    # Quiz progress
    active_quiz: Optional[QuizKind] = None
    tallies: QuizTallies = Field(default_factory=QuizTallies)
    quiz_index: int = 0

    # Personalization and model context
    visited: list[str] = Field(default_factory=list)
    exchange_log: list[ExchangeEntry] = Field(default_factory=list)

    transcript: list[Turn] = Field(default_factory=list)
    next_turn_id: int = 0

    # Set while a gateway call is outstanding
    busy: bool = False
    pending_retry: Optional[PendingRetry] = None

    # Audio
    sound_enabled: bool = True
    playback: AudioPlayback = Field(default_factory=AudioPlayback)

    # End-of-chat feedback
    feedback_helpful: Optional[bool] = None
    poll_score: Optional[int] = None

    @property
    def started(self) -> bool:
        """True once a language has been chosen."""
        return self.language is not None

    def reset(self) -> None:
        """Return every field to its initial value and bump the generation.

        ``sound_enabled`` is a client preference and survives the reset.
        """
        generation = self.generation + 1
        sound_enabled = self.sound_enabled
        fresh = SessionState(generation=generation, sound_enabled=sound_enabled)
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))

    def find_turn(self, turn_id: int) -> Optional[Turn]:
        for turn in self.transcript:
            if turn.id == turn_id:
                return turn
        return None


class TextSignal(BaseModel):
    """Free-form text submitted by the user."""

    kind: Literal["text"] = "text"
    text: str


class ChoiceSignal(BaseModel):
    """Activation of one option attached to a transcript turn."""

    kind: Literal["choice"] = "choice"
    turn_id: int
    option_index: int = Field(ge=0)


# Callers can match on signal.kind to dispatch.
Signal = Annotated[Union[TextSignal, ChoiceSignal], Field(discriminator="kind")]


class SessionSnapshot(BaseModel):
    """Public view of a session for API consumers."""

    generation: int
    language: Optional[Language]
    state: ConversationState
    mode: Optional[FreeTextMode] = None
    busy: bool
    sound_enabled: bool
    playback: AudioPlayback
    transcript: list[Turn]

    @classmethod
    def of(cls, session: SessionState) -> "SessionSnapshot":
        mode = None
        if session.state in (ConversationState.FREE_CHAT, ConversationState.DEEP_ANALYSIS):
            mode = session.state.value
        return cls(
            generation=session.generation,
            language=session.language,
            state=session.state,
            mode=mode,
            busy=session.busy,
            sound_enabled=session.sound_enabled,
            playback=session.playback,
            transcript=list(session.transcript),
        )
