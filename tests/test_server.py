"""HTTP API tests — the FastAPI app with the fake gateway and audio output.

The app is built through ``create_app`` with injected fakes, and the
lifespan runs inside the TestClient context manager, so content loading
and engine construction are the real ones.
"""

import threading

import pytest
from fastapi.testclient import TestClient

from pathfinder_server.app import create_app
from pathfinder_server.config import ServerSettings, load_settings

# Import mock infrastructure from test_engine
from test_engine import FakeAudioOutput, FakeGateway

API = "/api/v1"


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def output():
    return FakeAudioOutput()


@pytest.fixture
def client(gateway, output):
    app = create_app(ServerSettings(api_key="test"), gateway=gateway, audio_output=output)
    with TestClient(app) as c:
        yield c


def start(client, language="en") -> dict:
    resp = client.post(f"{API}/conversation/language", json={"language": language})
    assert resp.status_code == 200, resp.text
    return resp.json()


def choose(client, turn_id, option_index) -> dict:
    resp = client.post(
        f"{API}/conversation/choices",
        json={"turn_id": turn_id, "option_index": option_index},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


# =====================================================================
# Health & snapshot
# =====================================================================


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_initial_snapshot(self, client):
        body = client.get(f"{API}/conversation").json()
        assert body["state"] == "unstarted"
        assert body["language"] is None
        assert body["transcript"] == []
        assert body["sound_enabled"] is True
        assert body["playback"] == {"turn_id": None, "status": "paused"}


# =====================================================================
# Conversation
# =====================================================================


class TestConversation:

    def test_message_before_language_is_409(self, client):
        resp = client.post(f"{API}/conversation/messages", json={"text": "hi"})
        assert resp.status_code == 409
        assert "detail" in resp.json()

    def test_select_language(self, client):
        body = start(client, "ar")
        assert len(body["turns"]) == 1
        assert body["turns"][0]["sender"] == "system"
        assert body["conversation"]["state"] == "awaiting_opening_input"
        assert body["conversation"]["language"] == "ar"

    def test_select_language_twice_is_409(self, client):
        start(client)
        resp = client.post(f"{API}/conversation/language", json={"language": "ar"})
        assert resp.status_code == 409

    def test_unsupported_language_is_422(self, client):
        resp = client.post(f"{API}/conversation/language", json={"language": "fr"})
        assert resp.status_code == 422

    def test_message_gets_greeting_and_menu(self, client, gateway):
        start(client)
        resp = client.post(f"{API}/conversation/messages", json={"text": "I love research"})
        assert resp.status_code == 200
        body = resp.json()
        assert [t["sender"] for t in body["turns"]] == ["user", "system", "system"]
        assert body["turns"][1]["content"] == "Greeting for: I love research"
        assert body["conversation"]["state"] == "menu"
        assert gateway.called("personalized_greeting") == [("I love research", "en")]

    def test_choice_enters_chat_mode(self, client):
        start(client)
        menu = choose(client, 0, 0)["turns"][-1]
        body = choose(client, menu["id"], 3)
        assert body["conversation"]["state"] == "free_chat"
        assert body["conversation"]["mode"] == "free_chat"

        resp = client.post(f"{API}/conversation/messages", json={"text": "What is CBT?"})
        answer = resp.json()["turns"][1]
        assert answer["sources"] == [{"uri": "https://www.apa.org/", "title": "APA"}]

    def test_choice_options_carry_actions(self, client):
        welcome = start(client)["turns"][0]
        assert welcome["options"][0]["action"] == {"action": "main_menu"}
        assert welcome["options"][0]["priority"] == "primary"

    def test_ignored_choice_returns_no_turns(self, client):
        start(client)
        body = choose(client, 42, 0)
        assert body["turns"] == []

    def test_negative_option_index_is_422(self, client):
        start(client)
        resp = client.post(f"{API}/conversation/choices", json={"turn_id": 0, "option_index": -1})
        assert resp.status_code == 422

    def test_restart(self, client):
        start(client)
        choose(client, 0, 0)
        resp = client.post(f"{API}/conversation/restart")
        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "unstarted"
        assert body["generation"] == 1
        assert body["transcript"] == []
        start(client, "ar")


class TestSessionThreading:
    """Every endpoint that mutates the session runs on the event loop thread."""

    def test_mutations_share_the_loop_thread(self, client, monkeypatch):
        engine = client.app.state.engine
        threads: dict[str, int] = {}

        def record(name, method):
            def wrapper(*args, **kwargs):
                threads[name] = threading.get_ident()
                return method(*args, **kwargs)
            return wrapper

        async def handle(*args, **kwargs):
            threads["handle"] = threading.get_ident()
            return await original_handle(*args, **kwargs)

        original_handle = engine.handle
        monkeypatch.setattr(engine, "handle", handle)
        for name in ("select_language", "restart", "set_sound_enabled"):
            monkeypatch.setattr(engine, name, record(name, getattr(engine, name)))

        start(client)
        choose(client, 0, 0)
        client.put(f"{API}/conversation/sound", json={"enabled": False})
        client.post(f"{API}/conversation/restart")

        assert set(threads) == {"handle", "select_language", "restart", "set_sound_enabled"}
        assert len(set(threads.values())) == 1, threads


# =====================================================================
# Speech
# =====================================================================


class TestSpeech:

    def test_toggle_plays_then_pauses(self, client, output):
        start(client)
        resp = client.post(f"{API}/conversation/turns/0/speech")
        assert resp.status_code == 200
        assert resp.json() == {"turn_id": 0, "status": "playing"}
        resp = client.post(f"{API}/conversation/turns/0/speech")
        assert resp.json() == {"turn_id": 0, "status": "paused"}
        assert "play" in output.events

    def test_unknown_turn_is_404(self, client):
        start(client)
        resp = client.post(f"{API}/conversation/turns/99/speech")
        assert resp.status_code == 404

    def test_user_turn_is_400(self, client):
        start(client)
        choose(client, 0, 0)  # turn 1 is the echoed label
        resp = client.post(f"{API}/conversation/turns/1/speech")
        assert resp.status_code == 400

    def test_disable_sound(self, client, output):
        start(client)
        client.post(f"{API}/conversation/turns/0/speech")
        resp = client.put(f"{API}/conversation/sound", json={"enabled": False})
        assert resp.status_code == 200
        body = resp.json()
        assert body["sound_enabled"] is False
        assert body["playback"]["turn_id"] is None
        assert output.events[-1] == "stop"


# =====================================================================
# Reference data
# =====================================================================


class TestReference:

    def test_languages(self, client):
        resp = client.get(f"{API}/languages")
        assert resp.status_code == 200
        assert resp.json() == [
            {"code": "en", "name": "English", "direction": "ltr"},
            {"code": "ar", "name": "العربية", "direction": "rtl"},
        ]

    def test_chrome(self, client):
        body = client.get(f"{API}/languages/ar/chrome").json()
        assert body["direction"] == "rtl"
        assert body["sources_label"] == "المصادر"

    def test_unknown_chrome_is_404(self, client):
        resp = client.get(f"{API}/languages/fr/chrome")
        assert resp.status_code == 404


# =====================================================================
# Settings
# =====================================================================


class TestSettings:

    def test_defaults_from_env(self, monkeypatch):
        for name in ("SERVER_HOST", "SERVER_PORT", "SERVER_CORS_ORIGINS", "SERVER_SOUND"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        settings = load_settings()
        assert settings.api_key == "k"
        assert settings.port == 8080
        assert settings.cors_origins == ["*"]
        assert settings.sound is False

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        monkeypatch.setenv("SERVER_PORT", "9000")
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("SERVER_SOUND", "yes")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        settings = load_settings()
        assert settings.port == 9000
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.sound is True
        assert settings.log_level == "DEBUG"
