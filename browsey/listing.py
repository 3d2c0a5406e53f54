"""Single-directory listing for a resolved request path."""

from __future__ import annotations

import os
import stat as stat_module
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .ignore import IgnoreMatcher
from .search.files import file_extension
from .security import SafePath


@dataclass(frozen=True)
class FileItem:
    """One visible directory child row."""

    name: str
    type: str
    size: int
    modified: str
    extension: str | None
    absolute_path: str

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "modified": self.modified,
            "extension": self.extension,
            "absolutePath": self.absolute_path,
        }


@dataclass(frozen=True)
class DirectoryListing:
    path: str
    absolute_path: str
    items: list[FileItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "absolutePath": self.absolute_path,
            "items": [item.to_dict() for item in self.items],
        }


def _iso_timestamp(timestamp: float) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def list_directory(safe_path: SafePath, show_hidden: bool, ignore: IgnoreMatcher) -> DirectoryListing:
    """List children of ``safe_path``: directories first, then by name.

    Raises ``FileNotFoundError``/``NotADirectoryError``/``PermissionError``
    from the underlying scan; children that vanish or cannot be stat-ed
    between scan and stat are skipped.
    """
    directory = safe_path.full_path
    if not stat_module.S_ISDIR(os.stat(directory).st_mode):
        raise NotADirectoryError(str(directory))

    items: list[FileItem] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            name = entry.name
            if not show_hidden and name.startswith("."):
                continue
            if ignore(name):
                continue
            try:
                stat = entry.stat()
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            items.append(
                FileItem(
                    name=name,
                    type="directory" if is_dir else "file",
                    size=int(stat.st_size),
                    modified=_iso_timestamp(stat.st_mtime),
                    extension=file_extension(name) if is_file else None,
                    absolute_path=entry.path,
                )
            )

    items.sort(key=lambda item: (item.type != "directory", item.name.casefold(), item.name))
    path = "/" + safe_path.relative_path if safe_path.relative_path else "/"
    return DirectoryListing(path=path, absolute_path=str(directory), items=items)


@dataclass(frozen=True)
class PathStat:
    """Metadata for a single resolved path, file or directory."""

    name: str
    type: str
    size: int
    modified: str
    created: str
    extension: str | None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "modified": self.modified,
            "created": self.created,
            "extension": self.extension,
        }


def stat_path(safe_path: SafePath) -> PathStat:
    """Stat ``safe_path``; ``OSError`` subclasses propagate to the caller.

    ``created`` is the birth time where the platform records one, otherwise
    the inode change time.
    """
    target = safe_path.full_path
    stat = os.stat(target)
    is_dir = stat_module.S_ISDIR(stat.st_mode)
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    return PathStat(
        name=target.name,
        type="directory" if is_dir else "file",
        size=int(stat.st_size),
        modified=_iso_timestamp(stat.st_mtime),
        created=_iso_timestamp(created),
        extension=file_extension(target.name) if stat_module.S_ISREG(stat.st_mode) else None,
    )
