"""GeminiGateway tests against a mocked ``genai.Client``.

The client's ``aio.models.generate_content`` is an AsyncMock returning
SimpleNamespace responses shaped like ``GenerateContentResponse``; the
tests check the request each operation builds and how the response is
turned into text, sources or audio.
"""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types

from pathfinder import gateway as gateway_module
from pathfinder.constants import (
    ANALYSIS_MODEL,
    ANALYSIS_THINKING_BUDGET,
    CHAT_MODEL,
    GREETING_MODEL,
    TTS_MODEL,
    TTS_VOICE,
)
from pathfinder.errors import GatewayError, MissingCredentialError
from pathfinder.gateway import (
    GeminiGateway,
    api_key_from_env,
    clean_for_speech,
    extract_audio,
    extract_sources,
)
from pathfinder.models import ExchangeEntry, Source


# =====================================================================
# Response builders
# =====================================================================


def text_response(text, chunks=None):
    metadata = None
    if chunks is not None:
        metadata = SimpleNamespace(grounding_chunks=chunks)
    candidate = SimpleNamespace(grounding_metadata=metadata, content=None)
    return SimpleNamespace(text=text, candidates=[candidate])


def web_chunk(uri, title=None):
    return SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))


def audio_response(data):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data))
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), grounding_metadata=None)
    return SimpleNamespace(text=None, candidates=[candidate])


@pytest.fixture
def client():
    c = MagicMock()
    c.aio.models.generate_content = AsyncMock()
    return c


@pytest.fixture
def gw(client):
    return GeminiGateway(client)


def last_request(client) -> dict:
    return client.aio.models.generate_content.await_args.kwargs


# =====================================================================
# Operations
# =====================================================================


class TestGreeting:

    @pytest.mark.asyncio
    async def test_returns_text(self, gw, client):
        client.aio.models.generate_content.return_value = text_response("Welcome aboard!")
        result = await gw.personalized_greeting("I want to research memory", "en")

        assert result == "Welcome aboard!"
        request = last_request(client)
        assert request["model"] == GREETING_MODEL
        assert 'User\'s input: "I want to research memory"' in request["contents"]

    @pytest.mark.asyncio
    async def test_empty_text_raises(self, gw, client):
        client.aio.models.generate_content.return_value = text_response("")
        with pytest.raises(GatewayError, match="no text"):
            await gw.personalized_greeting("hi", "en")


class TestChatTurn:

    @pytest.mark.asyncio
    async def test_history_and_grounding(self, gw, client):
        client.aio.models.generate_content.return_value = text_response(
            "Try the APA site.",
            chunks=[
                web_chunk("https://www.apa.org/", "APA"),
                web_chunk("https://example.org/untitled"),
                SimpleNamespace(web=None),
            ],
        )
        history = [
            ExchangeEntry(role="user", text="What is CBT?"),
            ExchangeEntry(role="model", text="A form of therapy."),
        ]
        answer = await gw.chat_turn(history, "Where can I learn it?", "ar")

        assert answer.text == "Try the APA site."
        assert answer.sources == [
            Source(uri="https://www.apa.org/", title="APA"),
            Source(uri="https://example.org/untitled", title="https://example.org/untitled"),
        ]

        request = last_request(client)
        assert request["model"] == CHAT_MODEL
        contents = request["contents"]
        assert [c.role for c in contents] == ["user", "model", "user"]
        assert contents[-1].parts[0].text == "Where can I learn it?"
        config = request["config"]
        assert "Modern Standard Arabic" in str(config.system_instruction)
        assert config.tools[0].google_search is not None

    @pytest.mark.asyncio
    async def test_no_grounding_metadata(self, gw, client):
        client.aio.models.generate_content.return_value = text_response("Plain answer")
        answer = await gw.chat_turn([], "Hello", "en")
        assert answer.sources == []


class TestDeepAnalysis:

    @pytest.mark.asyncio
    async def test_thinking_budget(self, gw, client):
        client.aio.models.generate_content.return_value = text_response("Long analysis")
        result = await gw.deep_analysis("Plan my career", "en")

        assert result == "Long analysis"
        request = last_request(client)
        assert request["model"] == ANALYSIS_MODEL
        assert request["config"].thinking_config.thinking_budget == ANALYSIS_THINKING_BUDGET
        assert request["contents"].endswith("Plan my career")


class TestSpeak:

    @pytest.mark.asyncio
    async def test_returns_audio_and_strips_markdown(self, gw, client):
        client.aio.models.generate_content.return_value = audio_response(b"\x01\x00\x02\x00")
        data = await gw.speak("### **Bold** and `code`")

        assert data == b"\x01\x00\x02\x00"
        request = last_request(client)
        assert request["model"] == TTS_MODEL
        assert request["contents"][0].parts[0].text == " Bold and code"
        config = request["config"]
        assert config.response_modalities == ["AUDIO"]
        assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == TTS_VOICE

    @pytest.mark.asyncio
    async def test_missing_audio_raises(self, gw, client):
        client.aio.models.generate_content.return_value = text_response("not audio")
        with pytest.raises(GatewayError, match="No audio data"):
            await gw.speak("hello")


class TestProviderFailure:

    @pytest.mark.asyncio
    async def test_exception_wrapped_and_logged(self, gw, client, caplog):
        boom = RuntimeError("quota exceeded")
        client.aio.models.generate_content.side_effect = boom

        with caplog.at_level(logging.ERROR, logger="pathfinder.gateway"):
            with pytest.raises(GatewayError) as exc_info:
                await gw.deep_analysis("anything", "en")

        assert exc_info.value.__cause__ is boom
        assert "quota exceeded" in str(exc_info.value)
        assert any(r.exc_info for r in caplog.records), "Traceback should be logged"


# =====================================================================
# Helpers
# =====================================================================


class TestHelpers:

    @pytest.mark.parametrize("text,expected", [
        ("**bold**", "bold"),
        ("# Title", " Title"),
        ("use `pip`", "use pip"),
        ("plain text", "plain text"),
    ])
    def test_clean_for_speech(self, text, expected):
        assert clean_for_speech(text) == expected

    def test_extract_sources_no_candidates(self):
        assert extract_sources(SimpleNamespace(candidates=[])) == []
        assert extract_sources(SimpleNamespace(candidates=None)) == []

    def test_extract_audio_no_candidates(self):
        with pytest.raises(GatewayError):
            extract_audio(SimpleNamespace(candidates=[]))

    def test_extract_audio_real_types(self):
        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(
                        parts=[types.Part(inline_data=types.Blob(data=b"\x00\x00", mime_type="audio/pcm"))],
                    ),
                ),
            ],
        )
        assert extract_audio(response) == b"\x00\x00"


class TestCredentials:

    def test_gemini_key_preferred(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "primary")
        monkeypatch.setenv("API_KEY", "legacy")
        assert api_key_from_env() == "primary"

    def test_legacy_key_fallback(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "legacy")
        assert api_key_from_env() == "legacy"

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)
        with pytest.raises(MissingCredentialError):
            api_key_from_env()

    def test_from_env_builds_client(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        fake_client_cls = MagicMock()
        monkeypatch.setattr(gateway_module.genai, "Client", fake_client_cls)

        gw = GeminiGateway.from_env()
        fake_client_cls.assert_called_once_with(api_key="secret")
        assert isinstance(gw, GeminiGateway)
