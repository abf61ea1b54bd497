from __future__ import annotations

from pathlib import Path


class BlogdanticError(Exception):
    """Base exception for blogdantic errors."""


class FrontmatterError(BlogdanticError):
    """Raised when a front-matter block cannot be parsed into a mapping."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


class InvalidFilenameError(BlogdanticError):
    """Raised when a file name does not follow ``YYYY-MM-DD-title.md``."""


class MissingPathError(BlogdanticError):
    """Raised when an operation requires a path but none is known."""


class PostValidationError(BlogdanticError):
    """Raised when a file on disk does not validate as a post."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause


class ConfigError(BlogdanticError):
    """Raised when settings cannot be loaded."""
