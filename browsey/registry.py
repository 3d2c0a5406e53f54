"""File-backed registry of running Browsey servers.

Independent processes share one JSON file with no lock: every mutation is a
read-modify-write ending in an atomic rename. Two processes registering at
the same instant can lose one entry; the file itself is never left torn.
Entries whose process has died are pruned by whoever reads them next.
"""

from __future__ import annotations

import json
import logging
import os
import re
import signal
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .config import REGISTRY_PATH, REGISTRY_VERSION

logger = logging.getLogger(__name__)

_PORT_TARGET_RE = re.compile(r":([0-9]+)")
_PID_TARGET_RE = re.compile(r"[0-9]+")

# JSON key -> attribute name for optional InstanceInfo fields.
_OPTIONAL_FIELDS = {
    "apiUrl": "api_url",
    "bonjour": "bonjour",
    "https": "https",
    "httpsCert": "https_cert",
    "httpsKey": "https_key",
    "corsOrigin": "cors_origin",
    "watch": "watch",
    "showHidden": "show_hidden",
    "ignorePatterns": "ignore_patterns",
}
_KNOWN_KEYS = frozenset(
    {"pid", "port", "host", "kind", "rootPath", "startedAt", "readonly", "version", *_OPTIONAL_FIELDS}
)


@dataclass
class InstanceInfo:
    """A registered server process, keyed by ``pid``.

    ``root_path`` is empty for UI-only (``app``) instances. Optional fields
    carry what is needed to restart an instance with the same options, and
    ``extra`` keeps keys written by newer versions so they survive rewrites.
    """

    pid: int
    port: int
    host: str
    kind: str
    root_path: str
    started_at: str
    readonly: bool = True
    version: str = ""
    api_url: str | None = None
    bonjour: bool = False
    https: bool = False
    https_cert: str | None = None
    https_key: str | None = None
    cors_origin: str | None = None
    watch: bool = False
    show_hidden: bool = False
    ignore_patterns: list[str] = field(default_factory=list)
    extra: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = dict(self.extra)
        data.update(
            {
                "pid": self.pid,
                "port": self.port,
                "host": self.host,
                "kind": self.kind,
                "rootPath": self.root_path,
                "startedAt": self.started_at,
                "readonly": self.readonly,
                "version": self.version,
            }
        )
        for key, attr in _OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is None or value is False or value == []:
                continue
            data[key] = list(value) if isinstance(value, list) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> InstanceInfo:
        """Build from registry JSON; raises ``ValueError`` on a bad pid/port."""
        pid = data.get("pid")
        port = data.get("port")
        if isinstance(pid, bool) or not isinstance(pid, int):
            raise ValueError(f"invalid pid: {pid!r}")
        if isinstance(port, bool) or not isinstance(port, int):
            raise ValueError(f"invalid port: {port!r}")

        optional: dict[str, object] = {}
        for key, attr in _OPTIONAL_FIELDS.items():
            if key in data and data[key] is not None:
                optional[attr] = data[key]
        patterns = optional.get("ignore_patterns")
        if patterns is not None:
            optional["ignore_patterns"] = [p for p in patterns if isinstance(p, str)] if isinstance(patterns, list) else []

        # Anything but a real boolean keeps the safe default.
        readonly = data.get("readonly")
        if not isinstance(readonly, bool):
            readonly = True

        return cls(
            pid=pid,
            port=port,
            host=str(data.get("host", "")),
            kind=str(data.get("kind", "api")),
            root_path=str(data.get("rootPath") or ""),
            started_at=str(data.get("startedAt", "")),
            readonly=readonly,
            version=str(data.get("version", "")),
            extra={key: value for key, value in data.items() if key not in _KNOWN_KEYS},
            **optional,
        )


@dataclass
class RegistryFile:
    version: int = REGISTRY_VERSION
    instances: list[InstanceInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "instances": [instance.to_dict() for instance in self.instances],
        }


@dataclass(frozen=True)
class FindTarget:
    """Parsed ``stop`` target: ``type`` is ``pid``, ``port`` or ``path``."""

    type: str
    value: int | str


def parse_target(target: str) -> FindTarget:
    """Classify a CLI target string.

    ``:4200`` is always a port. A bare integer is a pid (callers fall back to
    port matching when no pid matches). Anything else is a path substring.
    """
    port_match = _PORT_TARGET_RE.fullmatch(target)
    if port_match is not None:
        return FindTarget(type="port", value=int(port_match.group(1)))

    if _PID_TARGET_RE.fullmatch(target) is not None and str(int(target)) == target:
        return FindTarget(type="pid", value=int(target))

    return FindTarget(type="path", value=target)


def is_process_running(pid: int) -> bool:
    """Probe ``pid`` with signal 0.

    ``PermissionError`` means the process exists under another user. Only
    ``ProcessLookupError`` counts as dead; other failures report alive so a
    live instance is never pruned by mistake.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return True
    return True


class InstanceRegistry:
    """Read/modify/write access to the shared instances file."""

    def __init__(
        self,
        path: Path = REGISTRY_PATH,
        is_running: Callable[[int], bool] = is_process_running,
        send_signal: Callable[[int, int], None] = os.kill,
    ) -> None:
        self.path = Path(path)
        self._is_running = is_running
        self._send_signal = send_signal

    def read(self) -> RegistryFile:
        """Load the registry, treating missing or corrupt files as empty."""
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return RegistryFile()
        except OSError as exc:
            logger.warning("Could not read registry file %s, resetting: %s", self.path, exc)
            return RegistryFile()

        try:
            data = json.loads(content)
        except ValueError:
            logger.warning("Could not parse registry file %s, resetting", self.path)
            return RegistryFile()

        if (
            not isinstance(data, dict)
            or data.get("version") != REGISTRY_VERSION
            or not isinstance(data.get("instances"), list)
        ):
            logger.warning("Registry file %s corrupted, resetting", self.path)
            return RegistryFile()

        instances: list[InstanceInfo] = []
        for raw in data["instances"]:
            if not isinstance(raw, dict):
                logger.warning("Dropping malformed registry entry: %r", raw)
                continue
            try:
                instances.append(InstanceInfo.from_dict(raw))
            except (TypeError, ValueError) as exc:
                logger.warning("Dropping malformed registry entry: %s", exc)
        return RegistryFile(version=REGISTRY_VERSION, instances=instances)

    def write(self, registry: RegistryFile) -> None:
        """Persist via temp file + rename, falling back to a direct write."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(registry.to_dict(), indent=2)
        temp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        try:
            temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, self.path)
        except OSError as exc:
            logger.debug("Atomic registry write failed, writing directly: %s", exc)
            try:
                temp_path.unlink()
            except OSError:
                pass
            self.path.write_text(payload, encoding="utf-8")

    def _prune(self, registry: RegistryFile) -> RegistryFile:
        live: list[InstanceInfo] = []
        for instance in registry.instances:
            if self._is_running(instance.pid):
                live.append(instance)
            else:
                logger.debug("Pruning stale instance pid=%s port=%s", instance.pid, instance.port)
        return RegistryFile(version=registry.version, instances=live)

    def register(self, info: InstanceInfo) -> None:
        registry = self._prune(self.read())
        registry.instances = [instance for instance in registry.instances if instance.pid != info.pid]
        registry.instances.append(info)
        self.write(registry)
        logger.info("Registered %s instance pid=%s on port %s", info.kind, info.pid, info.port)

    def deregister(self, pid: int) -> None:
        """Drop ``pid`` from the registry; unknown pids are a no-op."""
        registry = self.read()
        registry.instances = [instance for instance in registry.instances if instance.pid != pid]
        self.write(registry)
        logger.info("Deregistered instance pid=%s", pid)

    def list_instances(self) -> list[InstanceInfo]:
        """Return live instances, rewriting the file only if some were pruned."""
        registry = self.read()
        pruned = self._prune(registry)
        if len(pruned.instances) != len(registry.instances):
            self.write(pruned)
        return pruned.instances

    def find_all_matching_instances(self, target: str) -> list[InstanceInfo]:
        instances = self.list_instances()
        parsed = parse_target(target)

        if parsed.type == "port":
            return [instance for instance in instances if instance.port == parsed.value]

        if parsed.type == "pid":
            by_pid = [instance for instance in instances if instance.pid == parsed.value]
            if by_pid:
                return by_pid
            return [instance for instance in instances if instance.port == parsed.value]

        needle = str(parsed.value).lower()
        return [instance for instance in instances if needle in instance.root_path.lower()]

    def find_instance(self, target: str) -> InstanceInfo | None:
        matches = self.find_all_matching_instances(target)
        return matches[0] if matches else None

    def stop_instance(self, pid: int, force: bool = False) -> bool:
        """Signal ``pid`` to exit and deregister it either way.

        Returns whether the signal was delivered, i.e. whether the process
        was still around to receive it.
        """
        signum = getattr(signal, "SIGKILL", signal.SIGTERM) if force else signal.SIGTERM
        delivered = False
        if pid > 0:
            try:
                self._send_signal(pid, signum)
                delivered = True
            except OSError as exc:
                logger.debug("Signal %s to pid %s failed: %s", signum, pid, exc)
        self.deregister(pid)
        if delivered:
            logger.info("Sent signal %s to pid %s", signum, pid)
        return delivered
