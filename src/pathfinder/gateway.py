"""GeminiGateway — the CompletionGateway backed by the Google GenAI SDK.

One async request per operation, through ``genai.Client(...).aio``:

    personalized_greeting — GREETING_MODEL, greeting prompt with few-shot tones
    chat_turn             — CHAT_MODEL, persona system instruction, Google
                            Search grounding; sources from grounding chunks
    deep_analysis         — ANALYSIS_MODEL with an extended thinking budget
    speak                 — TTS_MODEL, audio modality, prebuilt voice

No caching and no retries.  Any provider failure is logged with its
traceback and re-raised as :class:`GatewayError`.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Optional

from google import genai
from google.genai import types

from pathfinder.constants import (
    ANALYSIS_MODEL,
    ANALYSIS_THINKING_BUDGET,
    CHAT_MODEL,
    GREETING_MODEL,
    TTS_MODEL,
    TTS_VOICE,
)
from pathfinder.errors import GatewayError, MissingCredentialError
from pathfinder.interfaces import CompletionGateway
from pathfinder.models.session import ExchangeEntry, Language
from pathfinder.models.transcript import ChatAnswer, Source
from pathfinder.prompt import PromptManager

logger = logging.getLogger(__name__)

# Markdown control characters are read aloud literally by the TTS model.
_SPEECH_STRIP_RE = re.compile(r"[*#`]")


def api_key_from_env() -> str:
    """Return ``GEMINI_API_KEY`` (or the legacy ``API_KEY``).

    Raises:
        MissingCredentialError: if neither variable is set.
    """
    key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    if not key:
        raise MissingCredentialError("GEMINI_API_KEY environment variable not set")
    return key


def clean_for_speech(text: str) -> str:
    return _SPEECH_STRIP_RE.sub("", text)


def extract_sources(response: types.GenerateContentResponse) -> list[Source]:
    """Collect web citations from the first candidate's grounding metadata."""
    if not response.candidates:
        return []
    metadata = response.candidates[0].grounding_metadata
    if metadata is None or not metadata.grounding_chunks:
        return []
    sources = []
    for chunk in metadata.grounding_chunks:
        web = chunk.web
        if web is None or not web.uri:
            continue
        sources.append(Source(uri=web.uri, title=web.title or web.uri))
    return sources


def extract_audio(response: types.GenerateContentResponse) -> bytes:
    """Return the inline PCM payload of a TTS response.

    Raises:
        GatewayError: if the response carries no audio.
    """
    try:
        data = response.candidates[0].content.parts[0].inline_data.data
    except (AttributeError, IndexError, TypeError):
        data = None
    if not data:
        raise GatewayError("No audio data returned from API")
    return data


class GeminiGateway(CompletionGateway):
    """CompletionGateway over the Gemini API.

    Args:
        client: a configured ``genai.Client``
        prompts: prompt renderer; a default :class:`PromptManager` if omitted
    """

    def __init__(self, client: genai.Client, prompts: Optional[PromptManager] = None) -> None:
        self._client = client
        self._prompts = prompts or PromptManager()

    @classmethod
    def from_env(cls) -> "GeminiGateway":
        """Build a gateway from the API key in the environment."""
        return cls(genai.Client(api_key=api_key_from_env()))

    # ------------------------------------------------------------------
    # CompletionGateway
    # ------------------------------------------------------------------

    async def personalized_greeting(self, text: str, language: Language) -> str:
        prompt = self._prompts.greeting(text, language)
        response = await self._generate("greeting", model=GREETING_MODEL, contents=prompt)
        return self._require_text("greeting", response)

    async def chat_turn(
        self,
        history: list[ExchangeEntry],
        text: str,
        language: Language,
    ) -> ChatAnswer:
        contents = [
            types.Content(role=entry.role, parts=[types.Part.from_text(text=entry.text)])
            for entry in history
        ]
        contents.append(types.Content(role="user", parts=[types.Part.from_text(text=text)]))

        config = types.GenerateContentConfig(
            system_instruction=self._prompts.persona(language),
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        response = await self._generate("chat", model=CHAT_MODEL, contents=contents, config=config)
        return ChatAnswer(
            text=self._require_text("chat", response),
            sources=extract_sources(response),
        )

    async def deep_analysis(self, text: str, language: Language) -> str:
        prompt = self._prompts.analysis(text, language)
        config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_budget=ANALYSIS_THINKING_BUDGET),
        )
        response = await self._generate(
            "analysis", model=ANALYSIS_MODEL, contents=prompt, config=config,
        )
        return self._require_text("analysis", response)

    async def speak(self, text: str) -> bytes:
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=TTS_VOICE),
                ),
            ),
        )
        contents = [types.Content(parts=[types.Part.from_text(text=clean_for_speech(text))])]
        response = await self._generate("speech", model=TTS_MODEL, contents=contents, config=config)
        return extract_audio(response)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _generate(self, operation: str, **kwargs) -> types.GenerateContentResponse:
        """Single ``generate_content`` call; provider errors become GatewayError."""
        logger.debug("Gemini %s request (model=%s)", operation, kwargs.get("model"))
        try:
            return await self._client.aio.models.generate_content(**kwargs)
        except Exception as exc:
            logger.exception("Gemini %s request failed", operation)
            raise GatewayError(f"{operation} request failed: {exc}") from exc

    @staticmethod
    def _require_text(operation: str, response: types.GenerateContentResponse) -> str:
        text = response.text
        if not text:
            logger.error("Gemini %s response contained no text", operation)
            raise GatewayError(f"{operation} response contained no text")
        return text
