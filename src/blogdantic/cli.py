"""Command line entry point: ``blogdantic lint|list|new``."""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from .collection import PostCollection
from .config import BlogSettings, load_settings
from .exceptions import BlogdanticError, MissingPathError
from .lint import lint_paths
from .models import Post

logger = logging.getLogger(__name__)

app = typer.Typer(help="Manage and check a directory of dated Markdown posts.", no_args_is_help=True)

EXIT_ISSUES = 1
EXIT_FAILURE = 2


class OutputFormat(str, Enum):
    text = "text"
    json = "json"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _settings(config: Optional[Path]) -> BlogSettings:
    try:
        return load_settings(config)
    except BlogdanticError as exc:
        _fail(exc)


def _fail(exc: BlogdanticError) -> NoReturn:
    typer.secho(f"error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(EXIT_FAILURE)


@app.command()
def lint(
    paths: Optional[List[Path]] = typer.Argument(
        None, help="Files or directories to check. Defaults to the posts directory."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file."),
    output: OutputFormat = typer.Option(OutputFormat.text, "--format", "-f"),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as failures."),
) -> None:
    """Check front-matter, file names and code fences."""
    settings = _settings(config)
    targets = list(paths) if paths else [settings.posts_dir]
    try:
        report = lint_paths(targets, settings)
    except BlogdanticError as exc:
        _fail(exc)

    if output is OutputFormat.json:
        typer.echo(report.to_json().decode("utf-8"))
    else:
        for issue in report.issues:
            typer.echo(issue.format())
        colour = typer.colors.GREEN if report.ok(strict=strict) else typer.colors.RED
        typer.secho(report.summary(), fg=colour)

    if not report.ok(strict=strict):
        raise typer.Exit(EXIT_ISSUES)


@app.command("list")
def list_posts(
    posts_dir: Optional[Path] = typer.Option(None, "--posts-dir", "-d"),
    layout: Optional[str] = typer.Option(None, "--layout", "-l", help="Only show this layout."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file."),
) -> None:
    """Print the posts ordered by date."""
    settings = _settings(config)
    directory = posts_dir or settings.posts_dir
    if not directory.is_dir():
        _fail(MissingPathError(f"{directory} does not exist"))
    posts = PostCollection(directory)
    query = posts.order_by("date")
    if layout is not None:
        query = query.filter(lambda post: post.layout == layout)
    try:
        items = query.to_list()
    except BlogdanticError as exc:
        _fail(exc)
    for post in items:
        typer.echo(f"{post.published.isoformat() if post.published else '----------'}  {post.layout}  {post.title}")


def _parse_date(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter(f"'{value}' is not a YYYY-MM-DD date") from exc


@app.command()
def new(
    title: str = typer.Argument(..., help="Title of the post."),
    layout: Optional[str] = typer.Option(None, "--layout", "-l"),
    published: Optional[str] = typer.Option(None, "--date", help="Publication date, YYYY-MM-DD."),
    posts_dir: Optional[Path] = typer.Option(None, "--posts-dir", "-d"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file."),
) -> None:
    """Create an empty post and print its path."""
    settings = _settings(config)
    try:
        post = Post(
            layout=layout or settings.default_layout,
            title=title,
            date=_parse_date(published),
        )
        path = PostCollection(posts_dir or settings.posts_dir).add(post)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except BlogdanticError as exc:
        _fail(exc)
    typer.echo(str(path))
