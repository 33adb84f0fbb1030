"""Action models — the routing payload carried by every Option.

Actions define what happens when the user activates an option:
  - PageAction: show a static content page from the flow graph
  - MainMenuAction: show the main menu
  - StartQuizAction / BeginQuizAction: (re)start a quiz, ask its first question
  - QuizAnswerAction: score one quiz answer and advance
  - EnterModeAction: switch to free chat or deep analysis
  - RetryAction: re-attempt the last failed remote call
  - RestartAction: discard the session and start over
  - EndChatAction / FeedbackAction / PollAction: the end-of-chat flow
  - ContentAction: display one content string verbatim, without options

The discriminated ``Action`` union uses the ``action`` field as its
discriminator so Pydantic can deserialise YAML dicts (``flow.yaml``) and
JSON request bodies directly into the correct type.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

QuizKind = Literal["career", "skills"]
Category = Literal["clinical", "academic", "research", "professional"]
FreeTextMode = Literal["free_chat", "deep_analysis"]


class PageAction(BaseModel):
    """Show a content page by its id in ``flow.yaml``."""

    action: Literal["page"] = "page"
    page: str


class MainMenuAction(BaseModel):
    """Show the main menu."""

    action: Literal["main_menu"] = "main_menu"


class StartQuizAction(BaseModel):
    """Reset a quiz and present its start message with a ready option."""

    action: Literal["start_quiz"] = "start_quiz"
    quiz: QuizKind


class BeginQuizAction(BaseModel):
    """Reset a quiz and ask its first question."""

    action: Literal["begin_quiz"] = "begin_quiz"
    quiz: QuizKind


class QuizAnswerAction(BaseModel):
    """One answer to one quiz question.

    ``category`` is None for distractor answers that score nothing.
    """

    action: Literal["quiz_answer"] = "quiz_answer"
    quiz: QuizKind
    index: int = Field(ge=0)
    category: Optional[Category] = None


class EnterModeAction(BaseModel):
    """Switch the conversation into a free-text mode."""

    action: Literal["enter_mode"] = "enter_mode"
    mode: FreeTextMode


class RetryAction(BaseModel):
    """Re-attempt the free-text operation that just failed."""

    action: Literal["retry"] = "retry"


class RestartAction(BaseModel):
    """Discard the session and return to language selection."""

    action: Literal["restart"] = "restart"


class EndChatAction(BaseModel):
    """End the conversation and start the feedback flow."""

    action: Literal["end_chat"] = "end_chat"


class FeedbackAction(BaseModel):
    """Thumbs up / thumbs down on the whole conversation."""

    action: Literal["feedback"] = "feedback"
    helpful: bool


class PollAction(BaseModel):
    """Career-clarity poll answer on a 1-5 scale."""

    action: Literal["poll"] = "poll"
    score: int = Field(ge=1, le=5)


class ContentAction(BaseModel):
    """Display one content string verbatim, with no options."""

    action: Literal["content"] = "content"
    key: str


# Discriminated union: pydantic picks the right type based on the "action" field.
Action = Annotated[
    Union[
        PageAction,
        MainMenuAction,
        StartQuizAction,
        BeginQuizAction,
        QuizAnswerAction,
        EnterModeAction,
        RetryAction,
        RestartAction,
        EndChatAction,
        FeedbackAction,
        PollAction,
        ContentAction,
    ],
    Field(discriminator="action"),
]
