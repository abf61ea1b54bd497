"""
Dated Markdown blog posts as Pydantic models.

The public API centers around :class:`PostCollection`, which manages a
directory of ``YYYY-MM-DD-title.md`` files with YAML front-matter, and
:func:`lint_paths`, which checks those files against the conventions a static
site generator expects.
"""

from .collection import PostCollection
from .config import BlogSettings, load_settings
from .fences import CodeBlock
from .handlers import FileHandler
from .lint import LintIssue, LintReport, lint_file, lint_paths, lint_text
from .models import Post

__all__ = (
    "BlogSettings",
    "CodeBlock",
    "FileHandler",
    "LintIssue",
    "LintReport",
    "Post",
    "PostCollection",
    "lint_file",
    "lint_paths",
    "lint_text",
    "load_settings",
)
