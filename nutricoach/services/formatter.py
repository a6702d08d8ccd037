"""
formatter.py — Turn the assistant's markup into structured sections.

The system prompt asks the model to mark headers as ###Title###, ingredient
lists with "- " and instructions with "1. ", "2. ", ... This module splits a
reply on those headers and classifies each remaining line, so clients can
render recipes without parsing markup themselves.
"""

import re

from nutricoach.models.chat import LineKind, ReplyLine, ReplySection

_HEADER = re.compile(r"###(.+?)###")
_STEP = re.compile(r"^\d+\.\s+")


def classify_line(line: str) -> ReplyLine | None:
    """Classify one line; None for blank lines."""
    stripped = line.strip()
    if not stripped:
        return None
    if stripped.startswith("- "):
        return ReplyLine(kind=LineKind.BULLET, text=stripped[2:].strip())
    match = _STEP.match(stripped)
    if match:
        return ReplyLine(kind=LineKind.STEP, text=stripped[match.end():].strip())
    return ReplyLine(kind=LineKind.TEXT, text=stripped)


def _lines(body: str) -> list[ReplyLine]:
    return [parsed for parsed in map(classify_line, body.splitlines()) if parsed is not None]


def parse_sections(text: str) -> list[ReplySection]:
    """
    Split *text* on ###Title### headers.

    re.split with one capture group alternates body, title, body, title, ...
    so even indices are bodies and odd indices are titles. Text before the
    first header becomes an untitled section, and is dropped if blank.
    A header with no body still yields a (line-less) section.
    """
    parts = _HEADER.split(text or "")
    sections: list[ReplySection] = []

    preamble = _lines(parts[0])
    if preamble:
        sections.append(ReplySection(title=None, lines=preamble))

    for i in range(1, len(parts), 2):
        title = parts[i].strip()
        body = parts[i + 1] if i + 1 < len(parts) else ""
        sections.append(ReplySection(title=title or None, lines=_lines(body)))

    return sections
