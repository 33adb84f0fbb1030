#!/usr/bin/env python3
"""Terminal client for the Pathfinder conversation engine.

Two modes:

  - Interactive (default): talk to the live Gemini API.  Type text, or a
    number to activate the matching option of the latest turn.  ``:restart``
    starts over, ``:speak N`` toggles speech for turn N, ``:quit`` exits.
  - Scripted (``--scripted``): random walk through the flow graph with a
    canned gateway, printing every turn.  No network access is needed.

Usage::

    # Live conversation in Arabic, with speech on the default audio device
    GEMINI_API_KEY=... python scripts/chat_console.py -l ar --sound

    # Offline random walk, 40 steps, reproducible
    python scripts/chat_console.py --scripted --steps 40 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Ensure the SDK is importable when running from a source checkout.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from rich.console import Console  # noqa: E402
from rich.markdown import Markdown  # noqa: E402
from rich.panel import Panel  # noqa: E402

from pathfinder.engine import ConversationEngine  # noqa: E402
from pathfinder.errors import MissingCredentialError  # noqa: E402
from pathfinder.gateway import GeminiGateway  # noqa: E402
from pathfinder.interfaces import CompletionGateway  # noqa: E402
from pathfinder.models.session import (  # noqa: E402
    TEXT_STATES,
    ChoiceSignal,
    ExchangeEntry,
    SessionState,
    TextSignal,
)
from pathfinder.models.transcript import ChatAnswer, Source, Turn  # noqa: E402
from pathfinder.speech import SounddeviceOutput, SpeechPlayer  # noqa: E402
from pathfinder.store import ContentStore  # noqa: E402

console = Console()

# Typed text used by the scripted walk in the text states.
_SCRIPTED_TEXTS = [
    "I'm worried I won't get into a good Master's program.",
    "What are the main career paths in psychology?",
    "I want to become a clinical psychologist in a hospital setting.",
    "How do I find a research mentor in Cairo?",
    "Compare a UX research career with clinical practice over ten years.",
]


# ---------------------------------------------------------------------------
# Canned gateway for --scripted
# ---------------------------------------------------------------------------

class ScriptedGateway(CompletionGateway):
    """Answers every request with a short canned text; no speech."""

    async def personalized_greeting(self, text: str, language: str) -> str:
        return f"(greeting for: {text})"

    async def chat_turn(
        self, history: list[ExchangeEntry], text: str, language: str,
    ) -> ChatAnswer:
        return ChatAnswer(
            text=f"(answer #{len(history) // 2 + 1} to: {text})",
            sources=[Source(uri="https://www.apa.org/education-career", title="APA")],
        )

    async def deep_analysis(self, text: str, language: str) -> str:
        return f"(analysis of: {text})"

    async def speak(self, text: str) -> bytes:
        return b""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_turn(turn: Turn, sources_label: str) -> None:
    """Print one turn: user turns right-aligned, system turns as panels."""
    if turn.sender == "user":
        console.print(f"[bold cyan]you[/] [dim]#{turn.id}[/] {turn.content}", justify="right")
        return

    console.print(Panel(Markdown(turn.content), title=f"#{turn.id}", title_align="left"))
    for index, option in enumerate(turn.options, start=1):
        style = "bold" if option.priority == "primary" else "dim"
        console.print(f"  [{style}]{index}. {option.label}[/]")
    if turn.sources:
        console.print(f"  [dim]{sources_label}:[/]")
        for source in turn.sources:
            console.print(f"    [link={source.uri}]{source.title}[/link]")


def render_turns(turns: list[Turn], store: ContentStore, session: SessionState) -> None:
    label = store.chrome(session.language)["sources_label"] if session.language else "Sources"
    for turn in turns:
        render_turn(turn, label)


def latest_options_turn(session: SessionState) -> Optional[Turn]:
    for turn in reversed(session.transcript):
        if turn.sender == "system" and turn.options:
            return turn
    return None


# ---------------------------------------------------------------------------
# Interactive mode
# ---------------------------------------------------------------------------

async def run_interactive(engine: ConversationEngine, store: ContentStore, language: str) -> None:
    session = engine.new_session()
    chrome = store.chrome(language)
    console.rule(f"[bold]{chrome['header_title']} {chrome['header_subtitle']}")
    console.print(f"[dim]{chrome['header_collaboration']}[/]", justify="center")
    render_turns(engine.select_language(session, language), store, session)

    while True:
        try:
            raw = console.input(f"[bold]{chrome['input_placeholder']}[/] ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if raw == ":quit":
            break
        if raw == ":restart":
            engine.restart(session)
            render_turns(engine.select_language(session, language), store, session)
            continue
        if raw.startswith(":speak "):
            turn_id = int(raw.split()[1])
            playback = await engine.toggle_speech(session, turn_id)
            console.print(f"[dim]speech: {playback.status} (turn {playback.turn_id})[/]")
            continue

        target = latest_options_turn(session)
        if raw.isdigit() and target is not None and 1 <= int(raw) <= len(target.options):
            signal = ChoiceSignal(turn_id=target.id, option_index=int(raw) - 1)
        else:
            signal = TextSignal(text=raw)

        with console.status("thinking..."):
            turns = await engine.handle(session, signal)
        render_turns(turns, store, session)

        if not session.started:
            # Restarted through an option; pick the same language again
            render_turns(engine.select_language(session, language), store, session)

    console.print(f"[dim]{chrome['footer_disclaimer']}[/]")


# ---------------------------------------------------------------------------
# Scripted random walk
# ---------------------------------------------------------------------------

async def run_scripted(
    engine: ConversationEngine,
    store: ContentStore,
    language: str,
    steps: int,
    rng: random.Random,
) -> None:
    session = engine.new_session()
    render_turns(engine.select_language(session, language), store, session)

    for step in range(steps):
        target = latest_options_turn(session)
        if session.state in TEXT_STATES and (target is None or rng.random() < 0.5):
            signal = TextSignal(text=rng.choice(_SCRIPTED_TEXTS))
        elif target is not None:
            signal = ChoiceSignal(turn_id=target.id, option_index=rng.randrange(len(target.options)))
        else:
            console.print("[yellow]No options left to choose from[/]")
            break

        console.print(f"[dim]step {step + 1} ({session.state.value})[/]")
        render_turns(await engine.handle(session, signal), store, session)

        if not session.started:
            console.rule("[bold]restarted")
            render_turns(engine.select_language(session, language), store, session)

    console.rule("[bold]Walk summary")
    console.print(f"  State:     {session.state.value}")
    console.print(f"  Turns:     {len(session.transcript)}")
    console.print(f"  Visited:   {', '.join(session.visited) or '-'}")
    console.print(f"  Tallies:   {session.tallies.model_dump()}")
    console.print(f"  Feedback:  helpful={session.feedback_helpful} poll={session.poll_score}")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Terminal client for the Pathfinder conversation engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-l", "--language", default="en", choices=["en", "ar"],
        help="Conversation language (default: en)",
    )
    parser.add_argument(
        "--scripted", action="store_true",
        help="Random walk with a canned gateway instead of the live API",
    )
    parser.add_argument(
        "--steps", type=int, default=30,
        help="Number of signals in scripted mode (default: 30)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="RNG seed for scripted mode",
    )
    parser.add_argument(
        "--sound", action="store_true",
        help="Play speech on the default audio device",
    )
    parser.add_argument(
        "--content-dir", default=None,
        help="Content directory (default: packaged content)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show SDK debug logging",
    )
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    store = ContentStore(content_dir=args.content_dir)
    store.load()

    if args.scripted:
        gateway: CompletionGateway = ScriptedGateway()
    else:
        try:
            gateway = GeminiGateway.from_env()
        except MissingCredentialError as exc:
            console.print(f"[red]{exc}[/]")
            return 1

    output = SounddeviceOutput() if args.sound else None
    speech = SpeechPlayer(gateway, output)
    engine = ConversationEngine(store, gateway, speech)

    if args.scripted:
        seed = args.seed if args.seed is not None else random.randrange(2**32)
        console.print(f"[dim]RNG seed: {seed}[/]")
        await run_scripted(engine, store, args.language, args.steps, random.Random(seed))
    else:
        await run_interactive(engine, store, args.language)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
