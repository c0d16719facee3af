"""
Markdown-ish model output -> HTML body markup for KaTeX auto-render.

Rules run in a fixed order over the whole text: bold, italic, headings (h1-h3),
then every remaining newline becomes <br>. LaTeX regions are lifted out first
and restored at the end with only `&`, `<` and `>` escaped, so the rules
never touch them.
"""

from __future__ import annotations

import html
import re
from typing import List

_OPEN = "\ue000"
_CLOSE = "\ue001"

# Display forms before inline ones; inline $...$ stays on one line.
_MATH_RE = re.compile(
    r"\$\$.+?\$\$"
    r"|\\\[.+?\\\]"
    r"|\\\(.+?\\\)"
    r"|(?<!\\)\$[^$\n]+?(?<!\\)\$",
    re.DOTALL,
)
_PLACEHOLDER_RE = re.compile(_OPEN + r"(\d+)" + _CLOSE)

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_H1_RE = re.compile(r"^# (.*)$", re.MULTILINE)
_H2_RE = re.compile(r"^## (.*)$", re.MULTILINE)
_H3_RE = re.compile(r"^### (.*)$", re.MULTILINE)


def _lift_math(text: str, regions: List[str]) -> str:
    def _stash(m: re.Match) -> str:
        regions.append(m.group(0))
        return f"{_OPEN}{len(regions) - 1}{_CLOSE}"

    return _MATH_RE.sub(_stash, text)


def _restore_math(text: str, regions: List[str]) -> str:
    def _unstash(m: re.Match) -> str:
        idx = int(m.group(1))
        return html.escape(regions[idx], quote=False) if idx < len(regions) else ""

    return _PLACEHOLDER_RE.sub(_unstash, text)


def format_response(text: str) -> str:
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace(_OPEN, "").replace(_CLOSE, "")

    regions: List[str] = []
    out = _lift_math(text, regions)
    out = html.escape(out, quote=False)

    out = _BOLD_RE.sub(r"<strong>\1</strong>", out)
    out = _ITALIC_RE.sub(r"<em>\1</em>", out)
    out = _H1_RE.sub(r"<h1>\1</h1>", out)
    out = _H2_RE.sub(r"<h2>\1</h2>", out)
    out = _H3_RE.sub(r"<h3>\1</h3>", out)
    out = out.replace("\n", "<br>")

    return _restore_math(out, regions)
