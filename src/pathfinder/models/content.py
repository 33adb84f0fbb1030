"""Pydantic models for the YAML content under ``content/``.

  Flow graph (from content/flow.yaml, language-neutral):
    - PageOption: option definition whose ``label`` is a string key
    - Page: static content page with an optional visited-branch marker
    - Flow: all pages plus the shared navigation option lists

  Quizzes (from content/strings/<lang>.yaml):
    - QuizAnswer: answer text with the category it scores (or None)
    - QuizQuestion: question text and its ordered answers
    - QuizContent: start message, ready label, questions and result texts
"""

from typing import Optional

from pydantic import BaseModel, Field

from pathfinder.models.action import Action, Category
from pathfinder.models.transcript import Priority


# ---------------------------------------------------------------------------
# Flow graph (content/flow.yaml)
# ---------------------------------------------------------------------------

class PageOption(BaseModel):
    """An option definition; ``label`` is resolved per language at render time."""

    label: str
    action: Action
    priority: Priority = "primary"


class Page(BaseModel):
    """A static content page.

    ``visit`` names the top-level branch (clinical/academic) recorded when the
    page is shown, for the personalized goodbye.
    """

    id: str
    text: str
    title: Optional[str] = None
    visit: Optional[Category] = None
    options: list[PageOption] = Field(default_factory=list)


class Flow(BaseModel):
    """The whole navigation graph.

    ``navigation`` holds reusable option lists keyed by name, e.g. the options
    attached after every free-chat answer.
    """

    pages: dict[str, Page]
    navigation: dict[str, list[PageOption]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Quizzes (content/strings/<lang>.yaml)
# ---------------------------------------------------------------------------

class QuizAnswer(BaseModel):
    text: str
    category: Optional[Category] = None


class QuizQuestion(BaseModel):
    question: str
    answers: list[QuizAnswer]


class QuizContent(BaseModel):
    """One quiz in one language.

    ``result`` maps outcome keys to texts: clinical/academic/balanced for the
    career quiz; header, strengths, recommendations and footer for the skills
    quiz.
    """

    start_message: str
    ready: str
    questions: list[QuizQuestion]
    result: dict[str, str]

    @property
    def shape(self) -> list[list[Optional[str]]]:
        """Answer categories per question, used to compare languages."""
        return [[a.category for a in q.answers] for q in self.questions]
