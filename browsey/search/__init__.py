"""Filename search: fuzzy scoring and the bounded directory walk."""

from __future__ import annotations

from .files import FileSearch, SearchResult, search_files
from .fuzzy import fuzzy_score

__all__ = [
    "FileSearch",
    "SearchResult",
    "fuzzy_score",
    "search_files",
]
