"""Cosmetic re-formatting of code-shaped search results.

This is a fixed sequence of textual substitutions followed by a
brace-depth re-indent, not a parser.  Content that is not code (chat
logs, prose) may come out oddly broken up; that is accepted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from corpus_rag.retrieval.models import SearchResult

INDENT_SIZE = 2

_SUBSTITUTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\s*;\s*}"), ";\n}"),
    (re.compile(r"{\s*"), "{\n  "),
    (re.compile(r"}\s*;"), "\n};"),
    # statement terminator not directly followed by a closer or the end
    (re.compile(r";(?!\s*[)}]|\s*\Z)"), ";\n"),
    (re.compile(r"(function\s+\w+)"), r"\n\1"),
    (re.compile(r"(const\s+|let\s+)"), r"\n\1"),
    (re.compile(r"\n\s*\n\s*\n"), "\n\n"),
    (re.compile(r"\A\n+"), ""),
]


def reindent(text: str, indent_size: int = INDENT_SIZE) -> str:
    """Re-indent *text* line by line from a running brace depth."""
    depth = 0
    lines: list[str] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            lines.append("")
            continue
        if "}" in stripped:
            depth = max(0, depth - 1)
        lines.append(" " * (depth * indent_size) + stripped)
        if "{" in stripped:
            depth += 1
    return "\n".join(lines)


def format_content(content: str) -> str:
    """Best-effort readability pass over a result's raw content."""
    formatted = content.strip()
    for pattern, replacement in _SUBSTITUTIONS:
        formatted = pattern.sub(replacement, formatted)
    return reindent(formatted)


def format_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    return [SearchResult(score=r.score, content=format_content(r.content)) for r in results]


def render_results(results: Iterable[SearchResult]) -> str:
    """Plain-text rendering used by the agent tool surface."""
    return "\n\n".join(f"SIMILARITY: {r.score} {r.content}" for r in results)
