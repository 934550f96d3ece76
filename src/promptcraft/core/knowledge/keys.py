"""Texts handed to the embedder for stored records and for queries.

Every text starts with a head line of routing keys (tool ids, categories,
template type) followed by the prose. Records and queries share the layout so
their heads line up.
"""

from __future__ import annotations

from typing import Iterable


def key_line(*groups: Iterable[str] | str) -> str:
    """Space-joined, de-duplicated keys; each group sorted, groups in order."""
    keys: list[str] = []
    for group in groups:
        values = [group] if isinstance(group, str) else sorted(group)
        keys.extend(v.strip().lower() for v in values if v and v.strip())
    return " ".join(dict.fromkeys(keys))


def keyed_text(head: str, *parts: str) -> str:
    body = "\n".join(p.strip() for p in parts if p and p.strip())
    return f"{head}\n{body}" if body else head


def document_text(
    title: str, content: str, target_tools: Iterable[str], categories: Iterable[str]
) -> str:
    return keyed_text(key_line(target_tools, categories), title, content)


def template_text(
    name: str, use_case: str, content: str, target_tool: str, template_type: str
) -> str:
    return keyed_text(key_line(target_tool, template_type), name, use_case, content)


def document_query(tool_id: str, categories: Iterable[str], text: str) -> str:
    return keyed_text(key_line(tool_id, categories), text)


def template_query(tool_id: str, template_type: str, text: str) -> str:
    return keyed_text(key_line(tool_id, template_type), text)
