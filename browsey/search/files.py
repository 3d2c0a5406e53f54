"""Bounded recursive filename search under a resolved root.

The walk is depth-first, skips hidden and ignored entries, and stops early
once it holds twice the requested number of hits.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..config import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_DEPTH
from ..ignore import IgnoreMatcher, create_ignore_matcher
from .fuzzy import fuzzy_score


def file_extension(name: str) -> str | None:
    """Lowercased extension without the dot, or ``None`` when absent."""
    suffix = os.path.splitext(name)[1]
    return suffix[1:].lower() or None


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit; ``path`` is root-relative with a leading slash."""

    name: str
    path: str
    absolute_path: str
    type: str
    score: int
    extension: str | None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "path": self.path,
            "absolutePath": self.absolute_path,
            "type": self.type,
            "score": self.score,
            "extension": self.extension,
        }


class FileSearch:
    """Fuzzy filename search with a recursion-depth bound."""

    def __init__(self, max_depth: int = MAX_SEARCH_DEPTH) -> None:
        self.max_depth = max_depth

    def search(
        self,
        root: str | os.PathLike[str],
        query: str,
        show_hidden: bool = False,
        ignore: IgnoreMatcher | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchResult]:
        """Return up to ``limit`` hits under ``root``, best score first.

        An empty query or non-positive limit returns ``[]`` without touching
        the filesystem.
        """
        if not query or limit <= 0:
            return []

        root_path = os.fspath(root)
        matcher = ignore if ignore is not None else create_ignore_matcher([])
        results: list[SearchResult] = []
        self._walk(root_path, root_path, query, show_hidden, matcher, limit * 2, results, 0)

        results.sort(key=lambda result: -result.score)
        return results[:limit]

    def _walk(
        self,
        root: str,
        directory: str,
        query: str,
        show_hidden: bool,
        ignore: IgnoreMatcher,
        capacity: int,
        results: list[SearchResult],
        depth: int,
    ) -> None:
        if depth > self.max_depth or len(results) >= capacity:
            return

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name.lower())
        except OSError:
            return

        for entry in entries:
            name = entry.name
            if not show_hidden and name.startswith("."):
                continue
            if ignore(name):
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                continue

            score = fuzzy_score(name, query)
            if score > 0:
                relative = os.path.relpath(entry.path, root).replace(os.sep, "/")
                results.append(
                    SearchResult(
                        name=name,
                        path="/" + relative,
                        absolute_path=entry.path,
                        type="directory" if is_dir else "file",
                        score=score,
                        extension=None if is_dir else file_extension(name),
                    )
                )
                if len(results) >= capacity:
                    return

            if is_dir:
                self._walk(root, entry.path, query, show_hidden, ignore, capacity, results, depth + 1)
                if len(results) >= capacity:
                    return


def search_files(
    root: Path,
    query: str,
    show_hidden: bool = False,
    ignore: IgnoreMatcher | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[SearchResult]:
    """Run a one-off :class:`FileSearch` with the default depth bound."""
    return FileSearch().search(root, query, show_hidden=show_hidden, ignore=ignore, limit=limit)
