"""Skeleton renderer — fills ``{named}`` placeholders and builds sections."""

from __future__ import annotations

import re
import string
from typing import Mapping

from promptcraft.core.errors import CompositionFailure

# Every placeholder a profile skeleton may use.
PLACEHOLDERS = frozenset({
    "tool_name",
    "tone",
    "output_format",
    "project_name",
    "project_description",
    "task_type",
    "description",
    "tech_stack",
    "target_audience",
    "technical_requirements",
    "ui_requirements",
    "constraints",
    "knowledge",
    "guidelines",
    "stage",
})

_FORMATTER = string.Formatter()
_SIMPLE_FIELD = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_BLANK_RUNS = re.compile(r"\n{3,}")


def template_fields(template: str) -> list[str]:
    """Placeholder names in a skeleton, in order of appearance.

    Raises ValueError for malformed braces or non-simple fields
    (``{a.b}``, ``{a[0]}``, ``{}``).
    """
    fields: list[str] = []
    for _literal, field_name, _spec, _conversion in _FORMATTER.parse(template):
        if field_name is None:
            continue
        if not field_name.isidentifier():
            raise ValueError(f"placeholder {{{field_name}}} is not a plain name")
        fields.append(field_name)
    return fields


def unknown_fields(template: str) -> list[str]:
    """Placeholders in ``template`` that are not in PLACEHOLDERS."""
    return [f for f in template_fields(template) if f not in PLACEHOLDERS]


def fill_template(template: str, values: Mapping[str, str]) -> str:
    """Fill a profile skeleton. Every placeholder must be known and supplied."""
    try:
        fields = template_fields(template)
    except ValueError as exc:
        raise CompositionFailure(f"Malformed skeleton: {exc}") from exc

    missing = sorted({f for f in fields if f not in values})
    if missing:
        raise CompositionFailure(f"Skeleton uses unknown placeholder(s): {', '.join(missing)}")
    return template.format_map(dict(values))


def fill_known(template: str, values: Mapping[str, str]) -> str:
    """Fill the placeholders we have values for; leave the rest intact.

    Used for retrieved templates, whose variables are not ours to validate.
    """
    def _sub(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _SIMPLE_FIELD.sub(_sub, template)


def render_list_section(heading: str, items: list[str] | tuple[str, ...]) -> str:
    """``### Heading`` plus bullets, or empty string for an empty list."""
    if not items:
        return ""
    bullets = "\n".join(f"- {item}" for item in items)
    return f"### {heading}\n{bullets}"


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines to one and strip the ends."""
    return _BLANK_RUNS.sub("\n\n", text).strip()
