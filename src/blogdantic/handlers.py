from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import FrontmatterError
from .utils import POST_EXTENSIONS, split_lines

logger = logging.getLogger(__name__)

FRONTMATTER_OPEN = "---"
FRONTMATTER_CLOSE = ("---", "...")


class FileHandler(ABC):
    """Abstract interface for translating between files and dictionaries."""

    extension: str
    extensions: tuple[str, ...] | None = None

    @abstractmethod
    def read(self, path: Path, *, body_field: str | None = None) -> dict[str, Any]:
        """Read the file and return a dictionary payload for Pydantic."""

    @abstractmethod
    def write(
        self,
        path: Path,
        data: Mapping[str, Any],
        *,
        body_field: str | None = None,
    ) -> None:
        """Persist a dictionary payload to disk."""


class MarkdownFrontmatterHandler(FileHandler):
    extension = ".md"
    extensions = POST_EXTENSIONS

    def read(self, path: Path, *, body_field: str | None = None) -> dict[str, Any]:
        text = path.read_text(encoding="utf-8")
        meta, body = split_frontmatter(text)
        data = dict(meta)
        field = body_field or "body"
        data[field] = body
        return data

    def write(
        self,
        path: Path,
        data: Mapping[str, Any],
        *,
        body_field: str | None = None,
    ) -> None:
        field = body_field or "body"
        payload = dict(data)
        body = payload.pop(field, "")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_frontmatter(payload, body), encoding="utf-8")
        logger.debug("Wrote %s", path)


@dataclass(frozen=True)
class FrontmatterBlock:
    """Location of the front-matter block inside a document.

    ``raw`` is ``None`` when the document does not open with ``---``.
    ``body_offset`` counts the file lines that precede the body.
    """

    raw: str | None
    body: str
    body_offset: int
    closed: bool

    @property
    def present(self) -> bool:
        return self.raw is not None


def locate_frontmatter(text: str) -> FrontmatterBlock:
    lines = split_lines(text, keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_OPEN:
        return FrontmatterBlock(raw=None, body=text, body_offset=0, closed=False)

    for index in range(1, len(lines)):
        if lines[index].rstrip() in FRONTMATTER_CLOSE:
            raw = "".join(lines[1:index])
            rest = lines[index + 1 :]
            offset = index + 1
            # Drop the separating blank line if present
            if rest and not rest[0].strip():
                rest = rest[1:]
                offset += 1
            return FrontmatterBlock(raw=raw, body="".join(rest), body_offset=offset, closed=True)

    return FrontmatterBlock(
        raw="".join(lines[1:]), body="", body_offset=len(lines), closed=False
    )


def parse_frontmatter(raw: str) -> dict[str, Any]:
    try:
        meta = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        # The block starts on the second line of the file
        line = mark.line + 2 if mark is not None else None
        raise FrontmatterError(f"Front-matter is not valid YAML: {exc}", line=line) from exc
    if meta is None:
        return {}
    if not isinstance(meta, dict):
        raise FrontmatterError("Front-matter must parse to a mapping", line=2)
    return meta


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    block = locate_frontmatter(text)
    if not block.present:
        return {}, text
    if not block.closed:
        raise FrontmatterError("Front-matter block is never closed", line=1)
    return parse_frontmatter(block.raw or ""), block.body


def render_frontmatter(meta: Mapping[str, Any], body: str) -> str:
    frontmatter = yaml.safe_dump(dict(meta), allow_unicode=True, sort_keys=False).strip()
    return f"---\n{frontmatter}\n---\n\n{body}".rstrip() + "\n"
