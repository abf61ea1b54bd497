"""Structural checks for post files.

Each check has a stable code so it can be disabled from the settings file:

``BD001``  the file opens with a front-matter block
``BD002``  the front-matter is closed and parses to a YAML mapping
``BD003``  ``layout`` is a non-empty string
``BD004``  ``title`` is a non-empty string
``BD005``  every fenced code block is closed by a matching fence
``BD006``  the file name follows ``YYYY-MM-DD-title.md``
``BD007``  fenced code blocks name their language (warning)
``BD008``  ``layout`` is one of the configured layouts (warning)
``BD009``  the file is valid UTF-8
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import orjson
from pydantic import BaseModel, Field

from .config import BlogSettings
from .exceptions import FrontmatterError, InvalidFilenameError, MissingPathError
from .fences import iter_code_blocks
from .handlers import locate_frontmatter, parse_frontmatter
from .utils import POST_EXTENSIONS, parse_post_filename, split_lines

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


RULES: dict[str, Severity] = {
    "BD001": Severity.ERROR,
    "BD002": Severity.ERROR,
    "BD003": Severity.ERROR,
    "BD004": Severity.ERROR,
    "BD005": Severity.ERROR,
    "BD006": Severity.ERROR,
    "BD007": Severity.WARNING,
    "BD008": Severity.WARNING,
    "BD009": Severity.ERROR,
}

REQUIRED_KEYS = (("layout", "BD003"), ("title", "BD004"))


class LintIssue(BaseModel):
    path: Path
    line: int
    code: str
    severity: Severity
    message: str

    def format(self) -> str:
        return f"{self.path}:{self.line}: {self.code} {self.severity.value} {self.message}"


class LintReport(BaseModel):
    files: List[Path] = Field(default_factory=list)
    issues: List[LintIssue] = Field(default_factory=list)

    @property
    def errors(self) -> List[LintIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[LintIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.WARNING]

    def ok(self, *, strict: bool = False) -> bool:
        return not (self.issues if strict else self.errors)

    def summary(self) -> str:
        return (
            f"{len(self.files)} file(s) checked: "
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"
        )

    def to_json(self) -> bytes:
        payload = self.model_dump(mode="json")
        payload["summary"] = {
            "files": len(self.files),
            "errors": len(self.errors),
            "warnings": len(self.warnings),
        }
        return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


def _key_line(raw: str, key: str) -> int:
    pattern = re.compile(rf"^{re.escape(key)}\s*:")
    for index, line in enumerate(split_lines(raw)):
        if pattern.match(line):
            return index + 2
    return 1


def _check_meta(
    meta: dict[str, Any], raw: str, settings: BlogSettings
) -> Iterable[tuple[int, str, str]]:
    for key, code in REQUIRED_KEYS:
        if key not in meta:
            yield 1, code, f"front-matter is missing required key '{key}'"
            continue
        value = meta[key]
        if not isinstance(value, str) or not value.strip():
            yield _key_line(raw, key), code, f"'{key}' must be a non-empty string"

    layout = meta.get("layout")
    if settings.layouts and isinstance(layout, str) and layout.strip():
        if layout not in settings.layouts:
            allowed = ", ".join(settings.layouts)
            yield (
                _key_line(raw, "layout"),
                "BD008",
                f"unknown layout '{layout}' (expected one of: {allowed})",
            )


def _check(text: str, name: str, settings: BlogSettings) -> Iterable[tuple[int, str, str]]:
    try:
        parse_post_filename(Path(name).name)
    except InvalidFilenameError as exc:
        yield 1, "BD006", str(exc)

    block = locate_frontmatter(text)
    if not block.present:
        yield 1, "BD001", "file does not begin with a '---' front-matter block"
    elif not block.closed:
        yield 1, "BD002", "front-matter block is never closed"
    else:
        raw = block.raw or ""
        try:
            meta = parse_frontmatter(raw)
        except FrontmatterError as exc:
            yield exc.line or 1, "BD002", str(exc).splitlines()[0]
        else:
            yield from _check_meta(meta, raw, settings)

    for code_block in iter_code_blocks(block.body, line_offset=block.body_offset):
        if not code_block.closed:
            yield (
                code_block.start_line,
                "BD005",
                f"code block opened with {code_block.fence} is never closed",
            )
        if settings.require_language and code_block.language is None:
            yield code_block.start_line, "BD007", "code block has no language tag"


def lint_text(
    text: str, name: str | Path, settings: Optional[BlogSettings] = None
) -> List[LintIssue]:
    """Check a document's contents; ``name`` is used for the file name rule."""
    settings = settings or BlogSettings()
    issues = [
        LintIssue(path=Path(name), line=line, code=code, severity=RULES[code], message=message)
        for line, code, message in _check(text, str(name), settings)
        if settings.rule_enabled(code)
    ]
    issues.sort(key=lambda issue: (issue.line, issue.code))
    return issues


def lint_file(path: Path | str, settings: Optional[BlogSettings] = None) -> List[LintIssue]:
    path = Path(path)
    settings = settings or BlogSettings()
    raw = path.read_bytes()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        if not settings.rule_enabled("BD009"):
            return []
        line = raw[: exc.start].count(b"\n") + 1
        message = f"file is not valid UTF-8 (byte {exc.start}: {exc.reason})"
        return [
            LintIssue(path=path, line=line, code="BD009", severity=RULES["BD009"], message=message)
        ]
    issues = lint_text(text, path, settings)
    logger.debug("Checked %s: %d issue(s)", path, len(issues))
    return issues


def iter_post_files(paths: Sequence[Path | str]) -> Iterable[Path]:
    """Expand directories into the Markdown files they contain."""
    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            found = [
                candidate
                for candidate in path.rglob("*")
                if candidate.is_file() and candidate.suffix.lower() in POST_EXTENSIONS
            ]
            yield from sorted(found)
        elif path.is_file():
            yield path
        else:
            raise MissingPathError(f"{path} does not exist")


def lint_paths(
    paths: Sequence[Path | str], settings: Optional[BlogSettings] = None
) -> LintReport:
    settings = settings or BlogSettings()
    report = LintReport()
    for path in iter_post_files(paths):
        report.files.append(path)
        report.issues.extend(lint_file(path, settings))
    logger.info(report.summary())
    return report
