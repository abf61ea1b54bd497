"""Fenced code block scanning for Markdown bodies.

Fences follow the CommonMark rules: an opening line of at least three
backticks or tildes indented by at most three spaces, closed by a line of the
same character that is at least as long and carries no info string. A block
that is never closed runs to the end of the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .utils import split_lines

OPENING_FENCE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
CLOSING_FENCE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")


@dataclass(frozen=True)
class CodeBlock:
    """A single fenced code block found in a document."""

    fence: str
    language: Optional[str]
    start_line: int
    end_line: Optional[int]
    code: str

    @property
    def closed(self) -> bool:
        return self.end_line is not None


def _opening(line: str) -> Optional[tuple[str, str]]:
    match = OPENING_FENCE.match(line)
    if match is None:
        return None
    fence = match["fence"]
    info = match["info"].strip()
    if fence[0] == "`" and "`" in info:
        return None
    return fence, info


def _closes(line: str, fence: str) -> bool:
    match = CLOSING_FENCE.match(line)
    if match is None:
        return False
    candidate = match["fence"]
    return candidate[0] == fence[0] and len(candidate) >= len(fence)


def iter_code_blocks(text: str, *, line_offset: int = 0) -> Iterator[CodeBlock]:
    """Yield every fenced code block in ``text``.

    ``line_offset`` is added to the reported 1-based line numbers so callers
    scanning a body can report positions relative to the whole file.
    """
    lines = [line.rstrip("\r") for line in split_lines(text)]
    index = 0
    while index < len(lines):
        opened = _opening(lines[index])
        if opened is None:
            index += 1
            continue
        fence, info = opened
        start = index
        content: List[str] = []
        index += 1
        end: Optional[int] = None
        while index < len(lines):
            if _closes(lines[index], fence):
                end = index
                break
            content.append(lines[index])
            index += 1
        yield CodeBlock(
            fence=fence,
            language=info.split()[0] if info else None,
            start_line=start + 1 + line_offset,
            end_line=end + 1 + line_offset if end is not None else None,
            code="\n".join(content),
        )
        index += 1


def code_blocks(text: str, *, line_offset: int = 0) -> List[CodeBlock]:
    return list(iter_code_blocks(text, line_offset=line_offset))
