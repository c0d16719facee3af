import pytest

from exercise_solver.config import DEFAULT_LANGUAGE
from exercise_solver.prompts import Subject, build_prompt, parse_subject


@pytest.mark.parametrize("subject", list(Subject))
def test_every_subject_asks_for_language_and_steps(subject):
    prompt = build_prompt(subject, "Vietnamese")

    assert prompt
    assert "Use Vietnamese for every explanation" in prompt
    assert "step by step" in prompt
    assert "Markdown headings" in prompt


def test_unknown_subject_returns_base_template():
    base = build_prompt(None)

    assert build_prompt("astrology") == base
    assert build_prompt("") == base
    assert f"Use {DEFAULT_LANGUAGE}" in base


def test_subject_rules_differ_from_base():
    base = build_prompt(None)
    for subject in Subject:
        assert build_prompt(subject) != base


def test_math_prompt_asks_for_matrix_and_cases():
    prompt = build_prompt(Subject.MATH)

    assert "$...$" in prompt
    assert "$$...$$" in prompt
    assert "matrix" in prompt
    assert "cases" in prompt


def test_physics_and_chemistry_specific_rules():
    assert "\\vec{v}" in build_prompt(Subject.PHYSICS)
    assert "SI units" in build_prompt(Subject.PHYSICS)
    assert "balanced" in build_prompt(Subject.CHEMISTRY)


@pytest.mark.parametrize(
    "subject",
    [Subject.BIOLOGY, Subject.HISTORY, Subject.GEOGRAPHY, Subject.NATURAL_SCIENCE],
)
def test_prose_subjects_do_not_require_latex(subject):
    prompt = build_prompt(subject)

    assert "LaTeX is not required" in prompt
    assert "Write every mathematical expression in LaTeX" not in prompt


def test_language_override():
    prompt = build_prompt(Subject.MATH, "English")

    assert "Use English for every explanation" in prompt
    assert build_prompt(Subject.MATH, "  ") == build_prompt(Subject.MATH)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("math", Subject.MATH),
        (" Physics ", Subject.PHYSICS),
        ("natural-science", Subject.NATURAL_SCIENCE),
        ("natural science", Subject.NATURAL_SCIENCE),
        ("NATURAL_SCIENCE", Subject.NATURAL_SCIENCE),
        ("astrology", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_subject(raw, expected):
    assert parse_subject(raw) is expected


def test_build_prompt_accepts_raw_tags():
    assert build_prompt("chemistry") == build_prompt(Subject.CHEMISTRY)
