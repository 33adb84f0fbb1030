"""Public model re-exports for pathfinder.

Consumers should import from ``pathfinder.models`` rather than reaching into
sub-modules directly.
"""

# --- Actions ---
from pathfinder.models.action import (
    Action,
    BeginQuizAction,
    Category,
    ContentAction,
    EndChatAction,
    EnterModeAction,
    FeedbackAction,
    FreeTextMode,
    MainMenuAction,
    PageAction,
    PollAction,
    QuizAnswerAction,
    QuizKind,
    RestartAction,
    RetryAction,
    StartQuizAction,
)

# --- Content ---
from pathfinder.models.content import (
    Flow,
    Page,
    PageOption,
    QuizAnswer,
    QuizContent,
    QuizQuestion,
)

# --- Transcript ---
from pathfinder.models.transcript import (
    ChatAnswer,
    Option,
    Priority,
    Reply,
    Sender,
    Source,
    Turn,
)

# --- Session / signal ---
from pathfinder.models.session import (
    TEXT_STATES,
    AudioPlayback,
    ChoiceSignal,
    ConversationState,
    ExchangeEntry,
    Language,
    PendingRetry,
    QuizTallies,
    SessionSnapshot,
    SessionState,
    Signal,
    TextSignal,
)

__all__ = [
    # Actions
    "Action",
    "BeginQuizAction",
    "Category",
    "ContentAction",
    "EndChatAction",
    "EnterModeAction",
    "FeedbackAction",
    "FreeTextMode",
    "MainMenuAction",
    "PageAction",
    "PollAction",
    "QuizAnswerAction",
    "QuizKind",
    "RestartAction",
    "RetryAction",
    "StartQuizAction",
    # Content
    "Flow",
    "Page",
    "PageOption",
    "QuizAnswer",
    "QuizContent",
    "QuizQuestion",
    # Transcript
    "ChatAnswer",
    "Option",
    "Priority",
    "Reply",
    "Sender",
    "Source",
    "Turn",
    # Session
    "TEXT_STATES",
    "AudioPlayback",
    "ChoiceSignal",
    "ConversationState",
    "ExchangeEntry",
    "Language",
    "PendingRetry",
    "QuizTallies",
    "SessionSnapshot",
    "SessionState",
    "Signal",
    "TextSignal",
]
