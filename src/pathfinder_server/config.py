"""Server configuration — reads settings from environment variables.

All settings except the API key have sensible defaults for local
development.  A missing API key is fatal: the server refuses to start.
"""

import os
from dataclasses import dataclass, field

from pathfinder.gateway import api_key_from_env


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Gemini API key
    api_key: str

    # Network
    host: str = "127.0.0.1"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Content directory (None → the content packaged with pathfinder)
    content_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Play speech on the server's own audio device
    sound: bool = False


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables.

    Raises:
        MissingCredentialError: if neither ``GEMINI_API_KEY`` nor
            ``API_KEY`` is set.
    """
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        api_key=api_key_from_env(),
        host=os.getenv("SERVER_HOST", "127.0.0.1"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        content_dir=os.getenv("SERVER_CONTENT_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        sound=_env_flag("SERVER_SOUND"),
    )
