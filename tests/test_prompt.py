"""PromptManager tests — verify Gemini prompt rendering per language.

Prompts are plain strings, so the tests check that the persona, the
response-language instruction, the few-shot examples and the user's text
all end up in the rendered output.
"""

import pytest

from pathfinder.prompt import PromptManager


@pytest.fixture
def pm():
    """Fresh PromptManager for each test."""
    return PromptManager()


# =====================================================================
# Persona
# =====================================================================


class TestPersona:

    def test_english_persona(self, pm):
        prompt = pm.persona("en")
        assert "The PsyEgypt Career Pathfinder" in prompt
        assert "MUST be in English" in prompt
        assert "Arabic" not in prompt

    def test_arabic_persona(self, pm):
        prompt = pm.persona("ar")
        assert "MUST be in Modern Standard Arabic" in prompt

    def test_persona_is_stripped(self, pm):
        prompt = pm.persona("en")
        assert prompt == prompt.strip()


# =====================================================================
# Greeting
# =====================================================================


class TestGreetingPrompt:

    def test_contains_user_text_and_persona(self, pm):
        prompt = pm.greeting("I'm scared I'll never find a job", "en")
        assert prompt.startswith("You are 'The PsyEgypt Career Pathfinder,'")
        assert 'User\'s input: "I\'m scared I\'ll never find a job"' in prompt
        assert prompt.rstrip().endswith("Now, generate a response for the user's input provided above.")

    def test_english_few_shots(self, pm):
        prompt = pm.greeting("hello", "en")
        for heading in ("Example 1 (challenge)", "Example 2 (neutral question)", "Example 3 (goal statement)"):
            assert heading in prompt, f"Missing few-shot '{heading}'"
        assert "What are the main career paths in psychology?" in prompt

    def test_arabic_few_shots(self, pm):
        prompt = pm.greeting("مرحبا", "ar")
        assert "مثال 1 (تحدي)" in prompt
        assert "إدخال المستخدم" in prompt
        assert "Example 1 (challenge)" not in prompt, "English examples must not leak into Arabic"
        assert "MUST be in Modern Standard Arabic" in prompt

    def test_tone_rules_present(self, pm):
        prompt = pm.greeting("x", "en")
        for tone in ("**Challenge**", "**Neutral Question**", "**Goal Statement**"):
            assert tone in prompt


# =====================================================================
# Deep analysis
# =====================================================================


class TestAnalysisPrompt:

    def test_contains_query(self, pm):
        prompt = pm.analysis("Compare research and clinical careers over ten years", "en")
        assert "deep and thoughtful analysis" in prompt
        assert prompt.endswith("Compare research and clinical careers over ten years")

    def test_language_instruction(self, pm):
        assert "Modern Standard Arabic" in pm.analysis("سؤال", "ar")


class TestRender:

    def test_unknown_template_raises(self, pm):
        import jinja2

        with pytest.raises(jinja2.TemplateNotFound):
            pm.render("missing.jinja2")
