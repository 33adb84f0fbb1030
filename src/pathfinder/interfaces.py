"""Abstract interfaces for the boundaries of the conversation engine.

These ABCs define the contract that concrete adapters must fulfil.  The SDK
ships one implementation of each (:class:`pathfinder.gateway.GeminiGateway`
and :class:`pathfinder.speech.SounddeviceOutput`); tests and the scripted
console substitute their own.

Typical integration flow::

    gateway: CompletionGateway = GeminiGateway.from_env()
    engine = ConversationEngine(store, gateway, SpeechPlayer(gateway, output))

    session = engine.new_session()
    engine.select_language(session, "en")
    turns = await engine.handle(session, TextSignal(text="I feel lost"))
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from pathfinder.models.session import ExchangeEntry, Language
from pathfinder.models.transcript import ChatAnswer


class CompletionGateway(ABC):
    """Interface for the remote generative-language and speech API.

    Every method is a single request with no caching and no retries.
    Implementations raise :class:`pathfinder.errors.GatewayError` on any
    provider failure; the engine turns that into an error turn with a
    retry option.
    """

    @abstractmethod
    async def personalized_greeting(self, text: str, language: Language) -> str:
        """Answer the user's opening challenge in one or two sentences.

        The tone adapts to the input: empathetic for a struggle,
        informative for a neutral question, encouraging for a goal.
        """
        ...

    @abstractmethod
    async def chat_turn(
        self,
        history: list[ExchangeEntry],
        text: str,
        language: Language,
    ) -> ChatAnswer:
        """Answer one free-chat message with web search grounding.

        Parameters
        ----------
        history:
            Prior role-tagged exchange, oldest first.  Does not include
            ``text``.
        text:
            The new user message.

        Returns
        -------
        ChatAnswer
            The answer text plus the web sources it was grounded on.
        """
        ...

    @abstractmethod
    async def deep_analysis(self, text: str, language: Language) -> str:
        """Answer a complex career scenario with extended reasoning."""
        ...

    @abstractmethod
    async def speak(self, text: str) -> bytes:
        """Synthesize ``text`` as 16-bit little-endian mono PCM."""
        ...


class AudioOutput(ABC):
    """Interface for a single audio output channel.

    At most one buffer is loaded at a time; :meth:`play` replaces whatever
    was loaded before.  ``on_finished`` is called once when the buffer
    plays to its end, never after :meth:`stop`.
    """

    @abstractmethod
    def play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        ...

    @abstractmethod
    def pause(self) -> None:
        """Suspend playback, keeping the current position."""
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Abort playback and discard the loaded buffer."""
        ...
