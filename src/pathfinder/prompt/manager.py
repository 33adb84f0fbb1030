"""PromptManager — Jinja2-based prompt renderer for the Gemini gateway.

Loads templates from the ``template/`` directory.  Every prompt starts from
``persona.jinja2``, which fixes the assistant persona and the response
language.  The greeting prompt additionally embeds one few-shot example per
tone (challenge, neutral question, goal) from ``greeting_examples.yaml``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2
import yaml


class PromptManager:
    """Jinja2-based prompt renderer.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )
        with (Path(template_dir) / "greeting_examples.yaml").open("r", encoding="utf-8") as f:
            self._greeting_examples: dict[str, list[dict[str, Any]]] = yaml.safe_load(f)

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context).strip()

    def persona(self, language: str) -> str:
        """System instruction used for search-grounded chat."""
        return self.render("persona.jinja2", language=language)

    def greeting(self, text: str, language: str) -> str:
        """Tone-matched opening response prompt with few-shot examples."""
        return self.render(
            "greeting.jinja2",
            text=text,
            language=language,
            examples=self._greeting_examples[language],
        )

    def analysis(self, text: str, language: str) -> str:
        return self.render("analysis.jinja2", text=text, language=language)
