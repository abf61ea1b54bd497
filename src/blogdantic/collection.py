from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional

from pydantic import ValidationError

from .exceptions import InvalidFilenameError, MissingPathError, PostValidationError
from .handlers import MarkdownFrontmatterHandler
from .models import Post
from .utils import parse_post_filename, post_filename, slugify

logger = logging.getLogger(__name__)

Predicate = Callable[[Post], bool]


@dataclass(frozen=True)
class _SortInstruction:
    field: str
    descending: bool = False


def _sort_value(post: Post, field: str) -> Any:
    if field == "date":
        return post.published
    if field in Post.model_fields:
        return getattr(post, field)
    return (post.model_extra or {}).get(field)


def _sorted(items: List[Post], instruction: _SortInstruction) -> List[Post]:
    """Order by one field; posts without a value go last in either direction."""
    field = instruction.field
    known = field in Post.model_fields or any(field in (item.model_extra or {}) for item in items)
    if items and not known:
        raise ValueError(f"Cannot order posts by unknown field '{field}'")
    present = [item for item in items if _sort_value(item, field) is not None]
    missing = [item for item in items if _sort_value(item, field) is None]
    present.sort(key=lambda item: _sort_value(item, field), reverse=instruction.descending)
    return present + missing


class PostCollection:
    """Lazy, disk-backed collection of blog posts.

    Parameters
    ----------
    path:
        Directory holding the posts (conventionally ``_posts``). Created
        automatically if missing.
    recursive:
        When ``True``, the collection scans sub-directories with ``Path.rglob``;
        otherwise only files directly inside ``path`` are considered.

    Only Markdown files named ``YYYY-MM-DD-title.md`` are treated as posts.
    Query methods compose filters and only read from disk when materialized
    (iteration, ``to_list``, ``first``...). Posts remain pure Pydantic models;
    their paths are tracked separately.
    """

    def __init__(self, path: Path | str, *, recursive: bool = False) -> None:
        self.root = Path(path).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._recursive = recursive
        self._handler = MarkdownFrontmatterHandler()

        self._model_cache: dict[Path, Post] = {}
        self._path_refs: dict[int, tuple[weakref.ReferenceType[Post], Path]] = {}

    # Query entrypoints -------------------------------------------------
    def query(self) -> "PostQuery":
        return PostQuery(self)

    def filter(self, predicate: Predicate) -> "PostQuery":
        return self.query().filter(predicate)

    def order_by(self, field: str) -> "PostQuery":
        return self.query().order_by(field)

    def head(self, n: int = 5) -> "PostQuery":
        return self.query().head(n)

    def tail(self, n: int = 5) -> "PostQuery":
        return self.query().tail(n)

    def to_list(self) -> List[Post]:
        return self.query().to_list()

    def count(self) -> int:
        return self.query().count()

    def first(self) -> Optional[Post]:
        return self.query().first()

    def last(self) -> Optional[Post]:
        return self.query().last()

    def exists(self, predicate: Predicate | None = None) -> bool:
        if predicate is None:
            return self.first() is not None
        return self.filter(predicate).first() is not None

    def __iter__(self) -> Iterator[Post]:
        return iter(self.query())

    def get(self, filename: str | Path) -> Optional[Post]:
        """Load a single post by name relative to the collection root."""
        target = Path(filename)
        if not target.is_absolute():
            target = (self.root / target).resolve()
        if not target.exists() or not target.is_file():
            return None
        if target.suffix.lower() not in self._handler.extensions:
            return None
        return self._load_model(target)

    # Lifecycle operations ----------------------------------------------
    def add(self, post: Post, path: Path | str | None = None) -> Path:
        existing = self._lookup_path(post)
        if existing is not None and path is None:
            return self.update(post)
        target = self._prepare_path(post, explicit_path=path)
        self._write(post, target)
        self._register_model(post, target)
        self._model_cache[target] = post
        logger.info("Added post %s", target.name)
        return target

    def update(self, post: Post) -> Path:
        path = self._lookup_path(post)
        if path is None:
            raise MissingPathError(
                "Cannot update a post that was not loaded from disk. "
                "Use add() or upsert(), or provide path explicitly."
            )
        self._write(post, path)
        self._model_cache[path] = post
        return path

    def upsert(self, post: Post) -> Path:
        path = self._lookup_path(post)
        if path is None:
            return self.add(post)
        return self.update(post)

    def delete(self, target: Post | str | Path) -> None:
        if isinstance(target, Post):
            path = self._lookup_path(target)
            if path is None:
                raise MissingPathError("Post has no associated path; cannot delete")
            self._forget_model(target)
        else:
            path = Path(target)
            if not path.is_absolute():
                path = (self.root / path).resolve()
        self._model_cache.pop(path, None)
        if path.exists():
            path.unlink()
            logger.info("Deleted post %s", path.name)

    def refresh(self, post: Post) -> Post:
        path = self._lookup_path(post)
        if path is None:
            raise MissingPathError("Post has no associated path; cannot refresh")
        return self._load_model(path, force=True)

    def path_for(self, post: Post) -> Path | None:
        return self._lookup_path(post)

    # Internal helpers --------------------------------------------------
    def _prepare_path(self, post: Post, explicit_path: Path | str | None = None) -> Path:
        if explicit_path is not None:
            path = Path(explicit_path)
            if not path.is_absolute():
                path = self.root / path
            parse_post_filename(path.name)
            return path.resolve()
        base = self._derive_path_for_post(post)
        candidate = base
        counter = 1
        while candidate.exists():
            candidate = base.with_stem(f"{base.stem}-{counter}")
            counter += 1
        return candidate

    def _derive_path_for_post(self, post: Post) -> Path:
        published = post.published or date.today()
        extras = post.model_extra or {}
        slug = extras.get("slug")
        if not (isinstance(slug, str) and slug.strip()):
            slug = post.title
        return (self.root / post_filename(published, slugify(slug), self._handler.extension)).resolve()

    def _dump(self, post: Post, path: Path) -> dict[str, Any]:
        data = post.model_dump()
        published, _ = parse_post_filename(path.name)
        if data.get("date") in (None, published):
            data.pop("date")
        return data

    def _write(self, post: Post, path: Path) -> None:
        if post.date is None:
            post.date, _ = parse_post_filename(path.name)
        self._handler.write(path, self._dump(post, path), body_field="body")

    def _register_model(self, post: Post, path: Path) -> None:
        model_id = id(post)

        def _cleanup(_: weakref.ReferenceType[Post]) -> None:
            self._path_refs.pop(model_id, None)

        ref = weakref.ref(post, _cleanup)
        self._path_refs[model_id] = (ref, path)

    def _forget_model(self, post: Post) -> None:
        self._path_refs.pop(id(post), None)

    def _load_model(self, path: Path, *, force: bool = False) -> Post:
        if not force and path in self._model_cache:
            return self._model_cache[path]
        published, _ = parse_post_filename(path.name)
        data = self._handler.read(path, body_field="body")
        if data.get("date") is None:
            data["date"] = published
        try:
            instance = Post.model_validate(data)
        except ValidationError as exc:
            raise PostValidationError(path, exc) from exc
        self._register_model(instance, path)
        self._model_cache[path] = instance
        return instance

    def _lookup_path(self, post: Post) -> Path | None:
        entry = self._path_refs.get(id(post))
        if not entry:
            return None
        ref, path = entry
        if ref() is None:
            self._path_refs.pop(id(post), None)
            return None
        return path

    def _iter_paths(self) -> Iterable[Path]:
        seen: set[Path] = set()
        for suffix in dict.fromkeys(self._handler.extensions):
            pattern = f"*{suffix}"
            iterator = self.root.rglob(pattern) if self._recursive else self.root.glob(pattern)
            for path in sorted(iterator):
                path = path.resolve()
                if not path.is_file() or path in seen:
                    continue
                try:
                    parse_post_filename(path.name)
                except InvalidFilenameError:
                    logger.debug("Skipping %s: not a post file name", path)
                    continue
                seen.add(path)
                yield path


class PostQuery:
    """Lazy query pipeline over a post collection."""

    def __init__(self, collection: PostCollection) -> None:
        self._collection = collection
        self._predicates: List[Predicate] = []
        self._sort: Optional[_SortInstruction] = None
        self._post_ops: List[Callable[[List[Post]], List[Post]]] = []

    # Pipeline construction ---------------------------------------------
    def filter(self, predicate: Predicate) -> "PostQuery":
        next_query = self._clone()
        next_query._predicates.append(predicate)
        return next_query

    def order_by(self, field: str) -> "PostQuery":
        descending = field.startswith("-")
        normalized = field[1:] if descending else field
        next_query = self._clone()
        next_query._sort = _SortInstruction(field=normalized, descending=descending)
        return next_query

    def head(self, n: int = 5) -> "PostQuery":
        if n < 0:
            raise ValueError("head expects a non-negative integer")
        next_query = self._clone()
        next_query._post_ops.append(lambda items, n=n: items[:n])
        return next_query

    def tail(self, n: int = 5) -> "PostQuery":
        if n < 0:
            raise ValueError("tail expects a non-negative integer")
        next_query = self._clone()
        next_query._post_ops.append(lambda items, n=n: items[-n:] if n else [])
        return next_query

    # Materialization ---------------------------------------------------
    def to_list(self) -> List[Post]:
        items = [self._collection._load_model(path) for path in self._collection._iter_paths()]
        for predicate in self._predicates:
            items = [item for item in items if predicate(item)]
        if self._sort is not None:
            items = _sorted(items, self._sort)
        for operation in self._post_ops:
            items = operation(items)
        return items

    def count(self) -> int:
        return len(self.to_list())

    def first(self) -> Optional[Post]:
        for item in self:
            return item
        return None

    def last(self) -> Optional[Post]:
        items = self.to_list()
        return items[-1] if items else None

    def __iter__(self) -> Iterator[Post]:
        return iter(self.to_list())

    # Utilities ---------------------------------------------------------
    def _clone(self) -> "PostQuery":
        clone = PostQuery(self._collection)
        clone._predicates = list(self._predicates)
        clone._sort = self._sort
        clone._post_ops = list(self._post_ops)
        return clone
