"""Pathfinder constants shared across the SDK.

These values are referenced by the engine, the quiz engine, the gateway and
the speech player.  Model identifiers and the chat history window can be
overridden via environment variables so that deployments can switch models
without code changes.
"""

import os

# Languages shipped under ``content/strings/``.
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "ar")

# Free text containing any of these terms (case-insensitive substring match)
# short-circuits all other handling with the crisis-hotline safety message.
DISTRESS_KEYWORDS: tuple[str, ...] = (
    "depressed",
    "suicidal",
    "hopeless",
    "can't go on",
    "anxious",
    "sad",
    "hurting",
    "kill myself",
    "مكتئب",
    "انتحار",
    "يأس",
)

# Quiz categories in tie-break precedence order for the skills
# recommendation.  ``academic`` is only scored by the career quiz.
SKILLS_PRECEDENCE: tuple[str, ...] = ("clinical", "research", "professional")

# --- Gemini models ---
GREETING_MODEL = os.getenv("GREETING_MODEL", "gemini-2.5-flash")
CHAT_MODEL = os.getenv("CHAT_MODEL", "gemini-2.5-flash")
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "gemini-2.5-pro")
ANALYSIS_THINKING_BUDGET = int(os.getenv("ANALYSIS_THINKING_BUDGET", "32768"))
TTS_MODEL = os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts")
TTS_VOICE = os.getenv("TTS_VOICE", "Kore")

# Speech comes back as 16-bit mono PCM at this rate.
SPEECH_SAMPLE_RATE = 24_000
SPEECH_CHANNELS = 1

# Maximum number of role-tagged entries kept in the free-chat exchange log.
# Each chat round adds two (user + model), oldest entries are dropped first.
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "20"))

# Clarity poll scale offered at the end of a conversation.
POLL_SCALE: tuple[int, ...] = (1, 2, 3, 4, 5)
