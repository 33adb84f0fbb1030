"""ContentStore tests — loading, lookups and cross-file validation.

Validation failures are exercised against a copy of the packaged content in
``tmp_path`` with a single file edited per test.
"""

import shutil

import pytest
import yaml

from pathfinder.models import MainMenuAction, PageAction, QuizContent
from pathfinder.store import DEFAULT_CONTENT_DIR, ContentStore, load_yaml, resolve_key


# =====================================================================
# Helpers
# =====================================================================


@pytest.fixture
def content_copy(tmp_path):
    """Writable copy of the packaged content directory."""
    target = tmp_path / "content"
    shutil.copytree(DEFAULT_CONTENT_DIR, target)
    return target


def edit_yaml(path, mutate):
    data = load_yaml(path)
    mutate(data)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)


# =====================================================================
# Loading
# =====================================================================


class TestLoad:

    def test_languages(self, store):
        assert store.languages == ("en", "ar")

    def test_pages_loaded_with_ids(self, store):
        assert "main_menu" in store.flow.pages
        for page_id, page in store.flow.pages.items():
            assert page.id == page_id

    def test_navigation_lists(self, store):
        for name in ("welcome", "after_answer", "career_result", "skills_result", "farewell"):
            assert store.navigation(name), f"Navigation list '{name}' should not be empty"

    def test_both_quizzes_per_language(self, store):
        for lang in store.languages:
            assert isinstance(store.quiz(lang, "career"), QuizContent)
            assert isinstance(store.quiz(lang, "skills"), QuizContent)

    def test_quiz_shapes(self, store):
        career = store.quiz("en", "career")
        assert len(career.questions) == 4
        assert all(len(q.answers) == 2 for q in career.questions)
        skills = store.quiz("ar", "skills")
        assert skills.shape == [
            ["clinical", "professional", None],
            ["research", None, "professional"],
            ["professional", None, "research"],
        ]

    def test_languages_override(self):
        s = ContentStore(languages=("en",))
        s.load()
        assert s.languages == ("en",)


# =====================================================================
# Lookups
# =====================================================================


class TestLookups:

    def test_text_dotted_key(self, store):
        assert store.text("en", "explore_sub_menu.clinical") == "Clinical Path"

    def test_text_list_segment(self, store):
        assert store.text("en", "mentors.profiles.0.name")

    def test_text_section_raises(self, store):
        with pytest.raises(KeyError):
            store.text("en", "explore_sub_menu")

    def test_text_missing_key_raises(self, store):
        with pytest.raises(KeyError):
            store.text("en", "no.such.key")

    def test_unknown_language_raises(self, store):
        with pytest.raises(KeyError):
            store.text("fr", "triage_message")

    def test_unknown_page_raises(self, store):
        with pytest.raises(KeyError):
            store.page("nowhere")

    def test_page_options_are_typed(self, store):
        page = store.page("main_menu")
        assert isinstance(page.options[0].action, PageAction)
        assert page.options[0].action.page == "explore_paths"

    def test_chrome(self, store):
        chrome = store.chrome("ar")
        assert chrome["direction"] == "rtl"
        assert chrome["language_name"] == "العربية"
        assert store.chrome("en")["direction"] == "ltr"

    def test_chrome_returns_copy(self, store):
        store.chrome("en")["direction"] = "rtl"
        assert store.chrome("en")["direction"] == "ltr"

    def test_render_options(self, store):
        options = store.render_options("ar", store.navigation("welcome"))
        assert options[0].label == store.text("ar", "explore_directly")
        assert isinstance(options[0].action, MainMenuAction)
        assert options[0].priority == "primary"


class TestResolveKey:

    @pytest.mark.parametrize("key,expected", [
        ("a", {"b": [10, 20]}),
        ("a.b.1", 20),
    ])
    def test_resolves(self, key, expected):
        assert resolve_key({"a": {"b": [10, 20]}}, key) == expected

    @pytest.mark.parametrize("key", ["x", "a.c", "a.b.2", "a.b.first"])
    def test_missing(self, key):
        with pytest.raises(KeyError):
            resolve_key({"a": {"b": [10, 20]}}, key)


# =====================================================================
# Validation failures
# =====================================================================


class TestValidation:

    def test_missing_strings_file(self, content_copy):
        (content_copy / "strings" / "ar.yaml").unlink()
        with pytest.raises(FileNotFoundError):
            ContentStore(content_dir=content_copy).load()

    def test_unknown_page_target(self, content_copy):
        def mutate(flow):
            flow["pages"]["main_menu"]["options"][0]["action"]["page"] = "nowhere"

        edit_yaml(content_copy / "flow.yaml", mutate)
        with pytest.raises(ValueError, match="unknown page 'nowhere'"):
            ContentStore(content_dir=content_copy).load()

    def test_key_missing_in_one_language(self, content_copy):
        edit_yaml(content_copy / "strings" / "ar.yaml", lambda s: s.pop("triage_message"))
        with pytest.raises(ValueError, match="missing key 'triage_message' in 'ar'"):
            ContentStore(content_dir=content_copy).load()

    def test_missing_quiz_result(self, content_copy):
        edit_yaml(
            content_copy / "strings" / "en.yaml",
            lambda s: s["career_quiz"]["result"].pop("balanced"),
        )
        with pytest.raises(ValueError, match="missing results"):
            ContentStore(content_dir=content_copy).load()

    def test_quiz_shape_mismatch(self, content_copy):
        def mutate(strings):
            strings["career_quiz"]["questions"][0]["answers"][0]["category"] = "academic"

        edit_yaml(content_copy / "strings" / "ar.yaml", mutate)
        with pytest.raises(ValueError, match="differs in shape"):
            ContentStore(content_dir=content_copy).load()
