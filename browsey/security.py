"""Client path resolution confined to a served root.

Every filesystem-facing operation resolves request paths through here first.
Traversal attempts fail outright instead of being sanitized.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SafePath:
    """A request path proven to stay inside the root.

    ``relative_path`` is slash-separated with no leading slash (``""`` is the
    root itself). ``full_path`` is the absolute path used for I/O.
    """

    relative_path: str
    full_path: Path


def _escapes_root(relative: str) -> bool:
    return relative == os.pardir or relative.startswith(os.pardir + os.sep) or os.path.isabs(relative)


def resolve_safe_path(root: str | os.PathLike[str], request_path: str) -> SafePath | None:
    """Resolve ``request_path`` against ``root`` or return ``None``.

    Rejects NUL bytes and any literal ``..`` segment, after normalizing
    backslashes and repeated slashes. The joined path is then re-checked
    against ``root`` so platform join quirks cannot escape it. No filesystem
    access happens here; existence is the caller's problem.
    """
    if "\0" in request_path:
        return None

    segments = [segment for segment in request_path.replace("\\", "/").split("/") if segment]
    if any(segment == ".." for segment in segments):
        return None

    relative_path = "/".join(segment for segment in segments if segment != ".")
    root_path = os.path.abspath(os.fspath(root))
    full_path = os.path.abspath(os.path.join(root_path, relative_path)) if relative_path else root_path

    try:
        relative = os.path.relpath(full_path, root_path)
    except ValueError:
        # Different drives on Windows.
        return None
    if _escapes_root(relative):
        return None

    return SafePath(relative_path=relative_path, full_path=Path(full_path))


@dataclass(frozen=True)
class PathResolver:
    """``resolve_safe_path`` bound to one configured root."""

    root: Path

    def resolve(self, request_path: str) -> SafePath | None:
        return resolve_safe_path(self.root, request_path)
