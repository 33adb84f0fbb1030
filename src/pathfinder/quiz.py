"""Quiz scoring engine — the career and skills quizzes.

Both quizzes share the same four-step lifecycle, implemented once in
:class:`QuizEngine`:

    start   — state -> quiz, tallies and index reset, ready option offered
    ask     — present question ``index`` with typed answer options
    answer  — bump one tally (or none for a distractor), ask the next index
    result  — state -> menu, outcome replies built by the subclass

The scoring rules themselves are pure functions (``career_outcome``,
``skills_result``) so they can be tested without a session.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict

from pathfinder.constants import SKILLS_PRECEDENCE
from pathfinder.models.action import BeginQuizAction, QuizAnswerAction, QuizKind
from pathfinder.models.session import ConversationState, QuizTallies, SessionState
from pathfinder.models.transcript import Option, Reply
from pathfinder.store import ContentStore

logger = logging.getLogger(__name__)

CareerOutcome = Literal["clinical", "academic", "balanced"]


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

def career_outcome(tallies: QuizTallies) -> CareerOutcome:
    """Clinical vs academic; equal counts (including 0/0) are balanced."""
    if tallies.clinical > tallies.academic:
        return "clinical"
    if tallies.academic > tallies.clinical:
        return "academic"
    return "balanced"


class SkillsResult(BaseModel):
    """Outcome of the skills quiz.

    ``strengths`` lists every category with a non-zero tally, in precedence
    order; ``recommendation`` is the single category to build on next.
    """

    model_config = ConfigDict(frozen=True)

    strengths: tuple[str, ...]
    recommendation: str


def skills_result(tallies: QuizTallies) -> SkillsResult:
    """Strengths plus one recommendation.

    The recommendation is the category with the highest tally; ties go to
    the earlier category in ``SKILLS_PRECEDENCE`` (so all-zero recommends
    clinical).
    """
    scores = {category: getattr(tallies, category) for category in SKILLS_PRECEDENCE}
    strengths = tuple(c for c in SKILLS_PRECEDENCE if scores[c] > 0)
    best = max(scores.values())
    recommendation = next(c for c in SKILLS_PRECEDENCE if scores[c] == best)
    return SkillsResult(strengths=strengths, recommendation=recommendation)


# ---------------------------------------------------------------------------
# Quiz lifecycle
# ---------------------------------------------------------------------------

class QuizEngine:
    """Shared start / ask / answer / result lifecycle for one quiz kind.

    Subclasses set ``kind`` and ``state`` and implement :meth:`_outcome`.

    Args:
        store: a loaded :class:`ContentStore` instance
    """

    kind: QuizKind
    state: ConversationState

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    def question_count(self, language: str) -> int:
        return len(self._store.quiz(language, self.kind).questions)

    def reset(self, session: SessionState) -> None:
        """Enter the quiz state with zeroed tallies and index."""
        session.state = self.state
        session.active_quiz = self.kind
        session.tallies.reset()
        session.quiz_index = 0

    def start(self, session: SessionState) -> list[Reply]:
        """Reset the quiz and present the start message with the ready option."""
        self.reset(session)
        content = self._store.quiz(session.language, self.kind)
        logger.debug("Starting %s quiz", self.kind)
        return [
            Reply(
                content=content.start_message,
                options=[Option(label=content.ready, action=BeginQuizAction(quiz=self.kind))],
            )
        ]

    def begin(self, session: SessionState) -> list[Reply]:
        """Reset the quiz and ask its first question."""
        self.reset(session)
        return self.ask(session, 0)

    def ask(self, session: SessionState, index: int) -> list[Reply]:
        """Ask question ``index``, or compute the result once past the last one."""
        content = self._store.quiz(session.language, self.kind)
        if index >= len(content.questions):
            return self.result(session)

        session.quiz_index = index
        question = content.questions[index]
        options = [
            Option(
                label=answer.text,
                action=QuizAnswerAction(quiz=self.kind, index=index, category=answer.category),
            )
            for answer in question.answers
        ]
        return [Reply(content=question.question, options=options)]

    def accepts(self, session: SessionState, action: QuizAnswerAction) -> bool:
        """Whether ``action`` answers the question currently being asked."""
        return (
            session.state == self.state
            and session.active_quiz == self.kind
            and action.index == session.quiz_index
        )

    def answer(self, session: SessionState, action: QuizAnswerAction) -> list[Reply]:
        """Score one answer and move to the next question.

        Answers to any question other than the current one are ignored.
        """
        if not self.accepts(session, action):
            logger.debug(
                "Ignoring stale %s answer for index %d (current %d)",
                self.kind, action.index, session.quiz_index,
            )
            return []

        if action.category is not None:
            session.tallies.increment(action.category)
        return self.ask(session, action.index + 1)

    def result(self, session: SessionState) -> list[Reply]:
        """Leave the quiz and return the outcome replies."""
        session.state = ConversationState.MENU
        session.active_quiz = None
        replies = self._outcome(session)
        logger.info("%s quiz finished: %s", self.kind, session.tallies.model_dump())
        return replies

    def _outcome(self, session: SessionState) -> list[Reply]:
        raise NotImplementedError


class CareerQuiz(QuizEngine):
    """Four questions, each answer scoring clinical or academic."""

    kind = "career"
    state = ConversationState.CAREER_QUIZ

    def _outcome(self, session: SessionState) -> list[Reply]:
        lang = session.language
        outcome = career_outcome(session.tallies)
        content = self._store.quiz(lang, self.kind)
        options = self._store.render_options(lang, self._store.navigation("career_result"))
        return [Reply(content=content.result[outcome], options=options)]


class SkillsQuiz(QuizEngine):
    """Three questions over clinical, research and professional skills.

    Some answers are distractors that score nothing.
    """

    kind = "skills"
    state = ConversationState.SKILLS_QUIZ

    def _outcome(self, session: SessionState) -> list[Reply]:
        lang = session.language
        result = skills_result(session.tallies)
        texts = self._store.quiz(lang, self.kind).result

        parts = [f"**{texts['header']}**"]
        if result.strengths:
            parts.append("\n".join(f"- {texts[f'{c}_strong']}" for c in result.strengths))
        parts.append(f"**{texts['recommendation_header']}**")
        parts.append(texts[f"recommend_{result.recommendation}"])
        parts.append(texts["recommendation_footer"])

        options = self._store.render_options(lang, self._store.navigation("skills_result"))
        return [
            Reply(content="\n\n".join(parts)),
            Reply(content=texts["closing"], options=options),
        ]
