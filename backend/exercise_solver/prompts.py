"""
Subject-specific instructions sent to the model alongside the exercise photo.

Every template is the shared preamble followed by a block of formatting rules.
Unknown or missing subjects get the base template.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Union

from .config import DEFAULT_LANGUAGE


class Subject(str, Enum):
    MATH = "math"
    PHYSICS = "physics"
    CHEMISTRY = "chemistry"
    BIOLOGY = "biology"
    HISTORY = "history"
    GEOGRAPHY = "geography"
    NATURAL_SCIENCE = "natural_science"


def parse_subject(raw: Optional[str]) -> Optional[Subject]:
    if raw is None:
        return None
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return None
    try:
        return Subject(key)
    except ValueError:
        return None


def _preamble(language: str) -> str:
    return (
        "Role: You are a patient teacher who explains exercises to students.\n"
        "Task: Solve the exercise in the attached image step by step and show every calculation.\n"
        "Requirements:\n"
        f"1) Use {language} for every explanation.\n"
        "2) Present the solution step by step, one clearly separated step at a time.\n"
        "3) Show all calculations in full; do not skip intermediate results.\n"
        "4) Use Markdown headings (#, ##, ###) for section titles and **bold** for the final answer.\n"
    )


_LATEX_RULES = (
    "5) Write every mathematical expression in LaTeX:\n"
    "   - inline formulas: $...$\n"
    "   - display formulas on their own line: $$...$$\n"
    "   - example: $E = mc^2$ or $$\\frac{-b \\pm \\sqrt{b^2-4ac}}{2a}$$\n"
    "6) Make sure every formula is valid LaTeX syntax.\n"
)

_BASE_RULES = (
    "5) If the exercise involves formulas, write them in LaTeX ($...$ inline, $$...$$ on their own line).\n"
    "6) End with a short summary of the result.\n"
)

_PROSE_RULES = (
    "5) LaTeX is not required; answer in well-structured prose.\n"
    "6) Use bullet lists for enumerations and **bold** for key terms.\n"
)

_SUBJECT_RULES: Dict[Subject, str] = {
    Subject.MATH: _LATEX_RULES
    + "7) For matrices use the LaTeX matrix environment (\\begin{pmatrix}...\\end{pmatrix}).\n"
    "8) For systems of equations use the LaTeX cases environment (\\begin{cases}...\\end{cases}).\n",
    Subject.PHYSICS: _LATEX_RULES
    + "7) Start by listing the given quantities and what is asked.\n"
    "8) Write vectors as \\vec{v} and attach SI units to every quantity, e.g. $v = 3\\,\\text{m/s}$.\n"
    "9) State the physical law used before applying it.\n",
    Subject.CHEMISTRY: _LATEX_RULES
    + "7) Write every chemical equation balanced, e.g. $$2H_2 + O_2 \\rightarrow 2H_2O$$.\n"
    "8) Indicate states of matter (s), (l), (g), (aq) where relevant.\n"
    "9) Show mole and mass calculations with units.\n",
    Subject.BIOLOGY: _PROSE_RULES
    + "7) Explain processes in the order they happen and name the structures involved.\n",
    Subject.HISTORY: _PROSE_RULES
    + "7) Give dates and a short timeline of the events involved.\n"
    "8) Separate causes, main events and consequences under their own headings.\n",
    Subject.GEOGRAPHY: _PROSE_RULES
    + "7) Describe location, causes and effects under their own headings.\n"
    "8) Mention figures (area, population, climate data) when the exercise asks for them.\n",
    Subject.NATURAL_SCIENCE: _PROSE_RULES
    + "7) Link each answer to the underlying scientific principle.\n"
    "8) Use LaTeX ($...$) only when a calculation is unavoidable.\n",
}


def build_prompt(subject: Union[Subject, str, None] = None, language: str = DEFAULT_LANGUAGE) -> str:
    if not isinstance(subject, Subject):
        subject = parse_subject(subject)
    rules = _SUBJECT_RULES.get(subject, _BASE_RULES) if subject is not None else _BASE_RULES
    return _preamble((language or "").strip() or DEFAULT_LANGUAGE) + rules
