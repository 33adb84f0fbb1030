"""Prompt rendering for the remote model.

Provides ``PromptManager``, a Jinja2-based template engine that renders the
persona system instruction, the tone-matched greeting prompt and the deep
analysis prompt in the user's language.
"""

from pathfinder.prompt.manager import PromptManager

__all__ = ["PromptManager"]
