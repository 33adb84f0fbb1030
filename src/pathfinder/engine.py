"""ConversationEngine — the state machine behind the Pathfinder chat.

Stateless engine pattern: every call receives the ``SessionState`` it
operates on, mutates it in place and returns the turns it appended.  No
per-conversation state is kept on the engine, so one engine can serve any
number of independently owned sessions.

State overview:
    unstarted               — waiting for a language
    awaiting_opening_input  — welcome shown; typed text gets a greeting
    menu                    — browsing static pages
    career_quiz/skills_quiz — answering quiz questions
    free_chat               — search-grounded chat with the model
    deep_analysis           — extended-reasoning answers
    ended                   — feedback and poll only (terminal until restart)

Signals are either typed text or the activation of an option on an earlier
turn.  Option actions are dispatched through an explicit table keyed by the
action tag; typed text goes to the model in the three text states.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from pathfinder.constants import CHAT_HISTORY_LIMIT, DISTRESS_KEYWORDS, POLL_SCALE
from pathfinder.interfaces import CompletionGateway
from pathfinder.models.action import (
    Action,
    BeginQuizAction,
    ContentAction,
    EndChatAction,
    EnterModeAction,
    FeedbackAction,
    MainMenuAction,
    PageAction,
    PollAction,
    QuizAnswerAction,
    RestartAction,
    RetryAction,
    StartQuizAction,
)
from pathfinder.models.session import (
    TEXT_STATES,
    AudioPlayback,
    ChoiceSignal,
    ConversationState,
    ExchangeEntry,
    PendingRetry,
    SessionState,
    Signal,
    TextSignal,
)
from pathfinder.models.transcript import Option, Reply, Sender, Source, Turn
from pathfinder.quiz import CareerQuiz, QuizEngine, SkillsQuiz
from pathfinder.speech import SpeechPlayer
from pathfinder.store import ContentStore

logger = logging.getLogger(__name__)

# Action tags accepted once the conversation has ended.
ENDED_ACTIONS: frozenset[str] = frozenset({"feedback", "poll", "restart"})

# The page shown for the main menu action.
MAIN_MENU_PAGE = "main_menu"


def contains_distress(text: str) -> bool:
    """Case-insensitive substring match against the distress keyword list."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in DISTRESS_KEYWORDS)


class ConversationEngine:
    """Drives one conversation at a time through its states.

    Args:
        store: a loaded :class:`ContentStore` instance
        gateway: the remote model adapter
        speech: speech player; one without an audio output if omitted
    """

    def __init__(
        self,
        store: ContentStore,
        gateway: CompletionGateway,
        speech: Optional[SpeechPlayer] = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._speech = speech or SpeechPlayer(gateway, None)
        self._quizzes: dict[str, QuizEngine] = {
            "career": CareerQuiz(store),
            "skills": SkillsQuiz(store),
        }

        # Dispatch table: action tag -> handler(session, action) -> replies
        self._handlers: dict[str, Callable[[SessionState, Action], Awaitable[list[Reply]]]] = {
            "page": self._on_page,
            "main_menu": self._on_main_menu,
            "start_quiz": self._on_start_quiz,
            "begin_quiz": self._on_begin_quiz,
            "quiz_answer": self._on_quiz_answer,
            "enter_mode": self._on_enter_mode,
            "retry": self._on_retry,
            "restart": self._on_restart,
            "end_chat": self._on_end_chat,
            "feedback": self._on_feedback,
            "poll": self._on_poll,
            "content": self._on_content,
        }

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    def new_session(self) -> SessionState:
        """Return a fresh session waiting for a language."""
        return SessionState()

    def select_language(self, session: SessionState, language: str) -> list[Turn]:
        """Fix the conversation language and show the welcome message.

        Raises:
            ValueError: if the language is not available, or a language was
                already selected (restart to change it).
        """
        if language not in self._store.languages:
            raise ValueError(f"Unsupported language '{language}'")
        if session.started:
            raise ValueError("Language already selected; restart to change it")

        session.language = language
        session.state = ConversationState.AWAITING_OPENING_INPUT
        logger.info("Conversation started in '%s'", language)
        welcome = Reply(
            content=self._text(session, "epf_welcome"),
            options=self._navigation(session, "welcome"),
        )
        return self._append(session, [welcome])

    def restart(self, session: SessionState) -> None:
        """Stop audio and reset the session to its initial condition.

        The generation counter is bumped so responses to calls made before
        the restart are discarded when they arrive.
        """
        self._speech.stop(session)
        session.reset()
        logger.info("Conversation restarted (generation %d)", session.generation)

    async def toggle_speech(self, session: SessionState, turn_id: int) -> AudioPlayback:
        """Play, pause or resume the speech for a system turn."""
        return await self._speech.toggle(session, turn_id)

    def set_sound_enabled(self, session: SessionState, enabled: bool) -> None:
        session.sound_enabled = enabled
        if not enabled:
            self._speech.stop(session)

    # ==================================================================
    # Signal handling
    # ==================================================================

    async def handle(self, session: SessionState, signal: Signal) -> list[Turn]:
        """Process one user signal and return the turns it appended.

        Signals are ignored (empty result) while a remote call is
        outstanding, and when they do not apply to the current state.

        Raises:
            ValueError: if no language has been selected yet.
        """
        if not session.started:
            raise ValueError("Conversation not started: select a language first")
        if session.busy:
            logger.debug("Ignoring %s signal while busy", signal.kind)
            return []

        generation = session.generation
        start = len(session.transcript)
        if isinstance(signal, TextSignal):
            await self._handle_text(session, signal.text)
        elif isinstance(signal, ChoiceSignal):
            await self._handle_choice(session, signal)

        if session.generation != generation:
            return []
        return session.transcript[start:]

    async def _handle_text(self, session: SessionState, raw_text: str) -> None:
        text = raw_text.strip()
        if not text:
            return
        if session.state not in TEXT_STATES:
            logger.debug("Ignoring text in state %s", session.state.value)
            return

        self._append_user(session, text)

        # Safety check precedes everything else
        if contains_distress(text):
            logger.info("Distress keyword matched; showing safety message")
            self._append(session, [Reply(content=self._text(session, "distress_message"))])
            return

        await self._run_free_text(session, session.state, text)

    async def _handle_choice(self, session: SessionState, signal: ChoiceSignal) -> None:
        turn = session.find_turn(signal.turn_id)
        if turn is None or signal.option_index >= len(turn.options):
            logger.debug(
                "Ignoring unknown option %d on turn %d", signal.option_index, signal.turn_id,
            )
            return

        option = turn.options[signal.option_index]
        action = option.action
        if not self._accepts(session, action):
            logger.debug(
                "Ignoring '%s' option in state %s", action.action, session.state.value,
            )
            return

        self._append_user(session, option.label)
        handler = self._handlers[action.action]
        replies = await handler(session, action)
        self._append(session, replies)

    def _accepts(self, session: SessionState, action: Action) -> bool:
        """Whether ``action`` applies to the session as it is now."""
        if session.state == ConversationState.ENDED:
            if action.action not in ENDED_ACTIONS:
                return False
            if isinstance(action, FeedbackAction):
                return session.feedback_helpful is None
            if isinstance(action, PollAction):
                return session.feedback_helpful is not None and session.poll_score is None
            return True

        if isinstance(action, (FeedbackAction, PollAction)):
            return False
        if isinstance(action, QuizAnswerAction):
            return self._quizzes[action.quiz].accepts(session, action)
        if isinstance(action, RetryAction):
            pending = session.pending_retry
            return pending is not None and pending.state == session.state
        return True

    # ==================================================================
    # Remote calls
    # ==================================================================

    async def _run_free_text(
        self, session: SessionState, state: ConversationState, text: str,
    ) -> None:
        """Answer typed text through the gateway for the given text state.

        ``busy`` is held for the duration.  A response that arrives after a
        restart is discarded; a failure appends the error turn with a retry
        option and remembers the text for it.
        """
        operations = {
            ConversationState.AWAITING_OPENING_INPUT: self._greet,
            ConversationState.FREE_CHAT: self._chat,
            ConversationState.DEEP_ANALYSIS: self._analyse,
        }
        operation = operations[state]

        generation = session.generation
        session.busy = True
        try:
            replies = await operation(session, text, generation)
        except Exception:
            if session.generation != generation:
                logger.info("Dropping failed %s response after restart", state.value)
                return
            logger.exception("Remote call for %s failed; offering retry", state.value)
            session.pending_retry = PendingRetry(state=state, text=text)
            error = Reply(
                content=self._text(session, "error_greeting"),
                options=[Option(label=self._text(session, "try_again"), action=RetryAction())],
            )
            self._append(session, [error])
            return
        finally:
            if session.generation == generation:
                session.busy = False

        if replies is None:
            logger.info("Discarding stale %s response (generation %d)", state.value, generation)
            return
        session.pending_retry = None
        self._append(session, replies)

    async def _greet(
        self, session: SessionState, text: str, generation: int,
    ) -> Optional[list[Reply]]:
        greeting = await self._gateway.personalized_greeting(text, session.language)
        if session.generation != generation:
            return None
        return [Reply(content=greeting), self._page_reply(session, MAIN_MENU_PAGE)]

    async def _chat(
        self, session: SessionState, text: str, generation: int,
    ) -> Optional[list[Reply]]:
        answer = await self._gateway.chat_turn(list(session.exchange_log), text, session.language)
        if session.generation != generation:
            return None

        log = [
            *session.exchange_log,
            ExchangeEntry(role="user", text=text),
            ExchangeEntry(role="model", text=answer.text),
        ]
        log = log[max(len(log) - CHAT_HISTORY_LIMIT, 0):]
        # The window always opens on a user message
        while log and log[0].role == "model":
            log.pop(0)
        session.exchange_log = log

        return [
            Reply(content=answer.text, sources=answer.sources),
            self._navigation_reply(session),
        ]

    async def _analyse(
        self, session: SessionState, text: str, generation: int,
    ) -> Optional[list[Reply]]:
        analysis = await self._gateway.deep_analysis(text, session.language)
        if session.generation != generation:
            return None
        return [Reply(content=analysis), self._navigation_reply(session)]

    # ==================================================================
    # Action handlers
    # ==================================================================

    async def _on_page(self, session: SessionState, action: PageAction) -> list[Reply]:
        return [self._page_reply(session, action.page)]

    async def _on_main_menu(self, session: SessionState, action: MainMenuAction) -> list[Reply]:
        return [self._page_reply(session, MAIN_MENU_PAGE)]

    async def _on_start_quiz(self, session: SessionState, action: StartQuizAction) -> list[Reply]:
        return self._quizzes[action.quiz].start(session)

    async def _on_begin_quiz(self, session: SessionState, action: BeginQuizAction) -> list[Reply]:
        return self._quizzes[action.quiz].begin(session)

    async def _on_quiz_answer(
        self, session: SessionState, action: QuizAnswerAction,
    ) -> list[Reply]:
        return self._quizzes[action.quiz].answer(session, action)

    async def _on_enter_mode(self, session: SessionState, action: EnterModeAction) -> list[Reply]:
        session.state = ConversationState(action.mode)
        session.active_quiz = None
        prompt_key = "chat_mode_prompt" if action.mode == "free_chat" else "analysis_mode_prompt"
        return [Reply(content=self._text(session, prompt_key))]

    async def _on_retry(self, session: SessionState, action: RetryAction) -> list[Reply]:
        pending = session.pending_retry
        session.pending_retry = None
        logger.info("Retrying %s request", pending.state.value)
        await self._run_free_text(session, pending.state, pending.text)
        return []

    async def _on_restart(self, session: SessionState, action: RestartAction) -> list[Reply]:
        self.restart(session)
        return []

    async def _on_end_chat(self, session: SessionState, action: EndChatAction) -> list[Reply]:
        session.state = ConversationState.ENDED
        session.active_quiz = None
        goodbye = self._text(session, "personalized_goodbye").replace(
            "{summary}", self._visited_summary(session),
        )
        question = Reply(
            content=self._text(session, "feedback_question"),
            options=[
                Option(label=self._text(session, "yes"), action=FeedbackAction(helpful=True)),
                Option(label=self._text(session, "no"), action=FeedbackAction(helpful=False)),
            ],
        )
        return [Reply(content=goodbye), question]

    async def _on_feedback(self, session: SessionState, action: FeedbackAction) -> list[Reply]:
        session.feedback_helpful = action.helpful
        logger.info("Conversation feedback: helpful=%s", action.helpful)
        content = "\n\n".join([
            self._text(session, "feedback_thanks"),
            self._text(session, "poll_question"),
        ])
        options = [Option(label=str(score), action=PollAction(score=score)) for score in POLL_SCALE]
        return [Reply(content=content, options=options)]

    async def _on_poll(self, session: SessionState, action: PollAction) -> list[Reply]:
        session.poll_score = action.score
        logger.info("Career clarity poll: %d", action.score)
        farewell = "\n\n".join([
            self._text(session, "final_goodbye"),
            f"**{self._text(session, 'challenge_title')}**",
            self._text(session, "challenge_text"),
            self._text(session, "toolkit_hook"),
        ])
        return [
            Reply(content=self._text(session, "poll_thanks")),
            Reply(content=farewell, options=self._navigation(session, "farewell")),
        ]

    async def _on_content(self, session: SessionState, action: ContentAction) -> list[Reply]:
        return [Reply(content=self._text(session, action.key))]

    # ==================================================================
    # Reply builders
    # ==================================================================

    def _page_reply(self, session: SessionState, page_id: str) -> Reply:
        """Show a static page; every page lands the conversation in ``menu``."""
        page = self._store.page(page_id)
        if page.visit is not None and page.visit not in session.visited:
            session.visited.append(page.visit)
        session.state = ConversationState.MENU
        session.active_quiz = None

        content = self._text(session, page.text)
        if page.title is not None:
            content = f"### {self._text(session, page.title)}\n\n{content}"
        return Reply(
            content=content,
            options=self._store.render_options(session.language, page.options),
        )

    def _navigation_reply(self, session: SessionState) -> Reply:
        """The "what's next?" turn attached after every model answer."""
        return Reply(
            content=self._text(session, "navigation_prompt"),
            options=self._navigation(session, "after_answer"),
        )

    def _visited_summary(self, session: SessionState) -> str:
        if not session.visited:
            return self._text(session, "goodbye_default_summary") + "."
        names = [self._text(session, f"explore_sub_menu.{branch}") for branch in session.visited]
        joiner = self._text(session, "goodbye_summary_joiner")
        return self._text(session, "goodbye_summary_prefix") + joiner.join(names) + "."

    def _navigation(self, session: SessionState, name: str) -> list[Option]:
        return self._store.render_options(session.language, self._store.navigation(name))

    def _text(self, session: SessionState, key: str) -> str:
        return self._store.text(session.language, key)

    # ==================================================================
    # Transcript
    # ==================================================================

    def _append(self, session: SessionState, replies: list[Reply]) -> list[Turn]:
        return [
            self._append_turn(session, "system", r.content, r.options, r.sources)
            for r in replies
        ]

    def _append_user(self, session: SessionState, text: str) -> Turn:
        return self._append_turn(session, "user", text, [], [])

    @staticmethod
    def _append_turn(
        session: SessionState,
        sender: Sender,
        content: str,
        options: list[Option],
        sources: list[Source],
    ) -> Turn:
        turn = Turn(
            id=session.next_turn_id,
            content=content,
            sender=sender,
            created_at=datetime.now(timezone.utc),
            options=list(options),
            sources=list(sources),
        )
        session.next_turn_id += 1
        session.transcript.append(turn)
        return turn
