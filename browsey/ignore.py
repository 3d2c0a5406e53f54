"""Glob-based entry-name filtering for listings and search."""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Callable, Iterable

IgnoreMatcher = Callable[[str], bool]


def _never_ignore(name: str) -> bool:
    return False


def create_ignore_matcher(patterns: Iterable[str]) -> IgnoreMatcher:
    """Build a predicate that is true when any glob matches a bare name.

    Globs follow shell rules (``*``, ``?``, ``[...]``) and are case-sensitive.
    An empty pattern list returns a constant-false predicate.
    """
    compiled = [re.compile(fnmatch.translate(pattern)) for pattern in patterns]
    if not compiled:
        return _never_ignore

    def is_ignored(name: str) -> bool:
        return any(regex.match(name) is not None for regex in compiled)

    return is_ignored


def parse_ignore_patterns(text: str | None) -> list[str]:
    """Split a comma-separated ``--ignore`` value into trimmed globs."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]
