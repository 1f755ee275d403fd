import pytest

from daily_challenge.prompts import PROMPT_TEMPLATES, SYSTEM_PROMPT, build_custom_prompt, build_messages, build_prompt
from daily_challenge.schemas import Difficulty


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_template_asks_for_wire_fields(difficulty):
    prompt = build_prompt(difficulty)
    for field in ("startingContent", "content", "title", "explanation"):
        assert f'"{field}"' in prompt


def test_templates_differ_by_difficulty():
    assert len(set(PROMPT_TEMPLATES.values())) == len(Difficulty)
    assert "3-5 lines" in PROMPT_TEMPLATES[Difficulty.EASY]
    assert "8-15 lines" in PROMPT_TEMPLATES[Difficulty.HARD]


def test_custom_prompt():
    prompt = build_custom_prompt(
        Difficulty.MEDIUM,
        context="Theme: array utilities.",
        language="typescript",
        extra_requirements=["Use type annotations"],
    )
    assert prompt.startswith("Theme: array utilities.")
    assert "JavaScript/TypeScript" not in prompt
    assert prompt.index("- Use type annotations") < prompt.index("Return ONLY a JSON response")


def test_messages():
    messages = build_messages("hi")
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert messages[1] == {"role": "user", "content": "hi"}
