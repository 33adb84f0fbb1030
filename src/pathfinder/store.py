"""ContentStore — loads the YAML content under ``content/`` into typed models.

This is the single source of truth for user-visible text at runtime.  The
store is loaded once at startup and is read-only afterwards.

Usage::

    store = ContentStore()          # defaults to the packaged content/
    store.load()                    # parse and cross-check every file

    store.text("en", "navigation.main_menu")
    store.page("explore_clinical").options
    store.quiz("ar", "career").questions[0].question
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from pathfinder.constants import SUPPORTED_LANGUAGES
from pathfinder.models.action import ContentAction, PageAction, QuizKind
from pathfinder.models.content import Flow, Page, PageOption, QuizContent
from pathfinder.models.transcript import Option

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_DIR = Path(__file__).resolve().parent / "content"

# Result texts every quiz must define, by quiz kind.
REQUIRED_RESULT_KEYS: dict[str, tuple[str, ...]] = {
    "career": ("clinical", "academic", "balanced"),
    "skills": (
        "header",
        "clinical_strong",
        "research_strong",
        "professional_strong",
        "recommendation_header",
        "recommend_clinical",
        "recommend_research",
        "recommend_professional",
        "recommendation_footer",
        "closing",
    ),
}


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def resolve_key(tree: Any, key: str) -> Any:
    """Walk a dotted key through nested dicts and lists.

    Numeric segments index into lists: ``mentors.profiles.0.name``.

    Raises:
        KeyError: if any segment is missing.
    """
    node = tree
    for segment in key.split("."):
        if isinstance(node, dict) and segment in node:
            node = node[segment]
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            raise KeyError(key)
    return node


# ---------------------------------------------------------------------------
# ContentStore
# ---------------------------------------------------------------------------

class ContentStore:
    """Loads ``flow.yaml`` and ``strings/<lang>.yaml`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        flow     — Flow (pages + shared navigation option lists)
        quizzes  — dict[language, dict[quiz kind, QuizContent]]
    """

    def __init__(
        self,
        content_dir: str | Path | None = None,
        languages: Optional[tuple[str, ...]] = None,
    ) -> None:
        self._base = Path(content_dir) if content_dir is not None else DEFAULT_CONTENT_DIR
        self._languages = tuple(languages or SUPPORTED_LANGUAGES)

        # Populated by load()
        self.flow: Flow = Flow(pages={})
        self.quizzes: dict[str, dict[str, QuizContent]] = {}
        self._strings: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse all YAML files under the content directory and validate them.

        Call this once at startup.  Raises ``FileNotFoundError`` if an
        expected file is missing and ``ValueError`` for a broken reference.
        """
        self._load_strings()
        self._load_flow()
        self._load_quizzes()
        self._validate_flow()
        logger.info(
            "ContentStore loaded: %d languages, %d pages, %d navigation lists",
            len(self._strings),
            len(self.flow.pages),
            len(self.flow.navigation),
        )

    def _load_strings(self) -> None:
        """Load strings/<lang>.yaml for every configured language."""
        for lang in self._languages:
            raw = load_yaml(self._base / "strings" / f"{lang}.yaml")
            if not isinstance(raw, dict):
                raise ValueError(f"strings/{lang}.yaml must contain a mapping")
            self._strings[lang] = raw

    def _load_flow(self) -> None:
        """Load flow.yaml; page ids come from the mapping keys."""
        raw = load_yaml(self._base / "flow.yaml")
        pages = {
            page_id: Page(id=page_id, **page_raw)
            for page_id, page_raw in (raw.get("pages") or {}).items()
        }
        self.flow = Flow(pages=pages, navigation=raw.get("navigation") or {})

    def _load_quizzes(self) -> None:
        """Parse both quizzes per language and check they agree in shape."""
        for lang, strings in self._strings.items():
            per_lang: dict[str, QuizContent] = {}
            for kind in REQUIRED_RESULT_KEYS:
                try:
                    raw = strings[f"{kind}_quiz"]
                except KeyError:
                    raise ValueError(f"strings/{lang}.yaml has no {kind}_quiz") from None
                quiz = QuizContent(**raw)
                missing = [k for k in REQUIRED_RESULT_KEYS[kind] if k not in quiz.result]
                if missing:
                    raise ValueError(
                        f"{kind}_quiz in strings/{lang}.yaml is missing results: {missing}"
                    )
                per_lang[kind] = quiz
            self.quizzes[lang] = per_lang

        # Every language must score identically
        reference_lang = self._languages[0]
        for lang in self._languages[1:]:
            for kind in REQUIRED_RESULT_KEYS:
                if self.quizzes[lang][kind].shape != self.quizzes[reference_lang][kind].shape:
                    raise ValueError(
                        f"{kind}_quiz differs in shape between '{reference_lang}' and '{lang}'"
                    )

    def _validate_flow(self) -> None:
        """Check every string key and page target referenced by flow.yaml."""
        for page in self.flow.pages.values():
            where = f"page '{page.id}'"
            self._check_key(page.text, where)
            if page.title is not None:
                self._check_key(page.title, where)
            self._check_options(page.options, where)

        for name, options in self.flow.navigation.items():
            self._check_options(options, f"navigation '{name}'")

    def _check_options(self, options: list[PageOption], where: str) -> None:
        for opt in options:
            self._check_key(opt.label, where)
            action = opt.action
            if isinstance(action, PageAction) and action.page not in self.flow.pages:
                raise ValueError(f"{where} links to unknown page '{action.page}'")
            if isinstance(action, ContentAction):
                self._check_key(action.key, where)

    def _check_key(self, key: str, where: str) -> None:
        for lang in self._strings:
            try:
                value = resolve_key(self._strings[lang], key)
            except KeyError:
                raise ValueError(f"{where} references missing key '{key}' in '{lang}'") from None
            if not isinstance(value, str):
                raise ValueError(f"{where} key '{key}' in '{lang}' is not a string")

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    @property
    def languages(self) -> tuple[str, ...]:
        """Language codes that were loaded, in configuration order."""
        return tuple(self._strings)

    def text(self, language: str, key: str) -> str:
        """Resolve a dotted string key for one language.

        Raises:
            KeyError: if the language or key is unknown, or the key names a
                section rather than a string.
        """
        value = resolve_key(self._strings[language], key)
        if not isinstance(value, str):
            raise KeyError(key)
        return value

    def page(self, page_id: str) -> Page:
        """Look up a page by id.

        Raises:
            KeyError: if no such page exists.
        """
        return self.flow.pages[page_id]

    def navigation(self, name: str) -> list[PageOption]:
        """Return a shared navigation option list by name."""
        return self.flow.navigation[name]

    def quiz(self, language: str, kind: QuizKind) -> QuizContent:
        return self.quizzes[language][kind]

    def chrome(self, language: str) -> dict[str, str]:
        """Header, placeholder, footer and direction strings for a client surface."""
        return dict(self._strings[language]["chrome"])

    def render_options(self, language: str, options: list[PageOption]) -> list[Option]:
        """Resolve option labels for one language into transcript Options."""
        return [
            Option(label=self.text(language, opt.label), action=opt.action, priority=opt.priority)
            for opt in options
        ]
