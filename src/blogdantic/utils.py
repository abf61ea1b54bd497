from __future__ import annotations

import re
from datetime import date
from typing import Any

from .exceptions import InvalidFilenameError

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
POST_FILENAME_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>[A-Za-z0-9][A-Za-z0-9-]*)"
    r"(?P<suffix>\.md|\.markdown)$"
)
POST_EXTENSIONS = (".md", ".markdown")


def slugify(value: Any) -> str:
    """Normalize a value into a filesystem-friendly slug."""
    text = str(value).strip().lower()
    text = SLUG_PATTERN.sub("-", text)
    text = text.strip("-")
    return text or "post"


def parse_post_filename(name: str) -> tuple[date, str]:
    """Split ``2014-03-02-array-iteration.md`` into its date and slug."""
    match = POST_FILENAME_PATTERN.match(name)
    if match is None:
        raise InvalidFilenameError(
            f"'{name}' does not follow the YYYY-MM-DD-title.md naming convention"
        )
    try:
        published = date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError as exc:
        raise InvalidFilenameError(f"'{name}' has an invalid date: {exc}") from exc
    return published, match["slug"]


def post_filename(published: date, title: Any, extension: str = ".md") -> str:
    return f"{published.isoformat()}-{slugify(title)}{extension}"


def split_lines(text: str, *, keepends: bool = False) -> list[str]:
    """Split on ``\\n`` only, so line numbers match what editors show.

    Unlike ``str.splitlines`` form feeds and unicode separators stay inside
    their line. A trailing newline does not produce an empty last line.
    """
    lines = text.split("\n")
    tail = lines.pop()
    if keepends:
        lines = [line + "\n" for line in lines]
    if tail:
        lines.append(tail)
    return lines
