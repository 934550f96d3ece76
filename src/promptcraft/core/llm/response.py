"""Parsing and sanity checks for enhancement output."""

from __future__ import annotations

import re

# An enhanced prompt this much shorter than the draft has lost content.
MIN_LENGTH_RATIO = 0.6

_FENCE = re.compile(r"^```[\w-]*\n(?P<body>.*)\n```$", re.DOTALL)
_DRAFT_TAGS = re.compile(r"</?draft>", re.IGNORECASE)
_PREAMBLE = re.compile(
    r"^(?:sure|certainly|of course|okay|ok|here(?:'s| is| are))\b[^\n]*:?\s*$",
    re.IGNORECASE,
)


def clean_enhanced_text(content: str) -> str:
    """Strip code fences, echoed draft tags and a leading chatty preamble line."""
    lines = (content or "").strip().split("\n")
    while lines and _PREAMBLE.match(lines[0].strip()):
        lines.pop(0)
    text = "\n".join(lines).strip()

    match = _FENCE.match(text)
    if match:
        text = match.group("body").strip()
    return _DRAFT_TAGS.sub("", text).strip()


def check_enhanced_text(text: str, draft: str, project_name: str = "") -> list[str]:
    """Reasons the cleaned output is unusable; empty list means it is fine."""
    if not text:
        return ["empty response"]

    problems: list[str] = []
    if len(text) < len(draft) * MIN_LENGTH_RATIO:
        problems.append(f"response is {len(text)} chars against a {len(draft)}-char draft")
    if project_name and project_name.lower() not in text.lower():
        problems.append("response dropped the project name")
    return problems
