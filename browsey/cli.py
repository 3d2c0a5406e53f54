"""Command-line front door for browsey.

Subcommands start an API server, manage running instances through the
shared registry, and run one-off searches or previews against a root.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import config
from .config import DEFAULT_API_PORT, DEFAULT_HOST, DEFAULT_SEARCH_LIMIT, MAX_TEXT_SIZE, REGISTRY_PATH
from .highlight import DEFAULT_STYLE, colorize_source, read_text, sanitize_terminal_text
from .ignore import create_ignore_matcher, parse_ignore_patterns
from .log import setup_logging
from .registry import InstanceInfo, InstanceRegistry
from .search import FileSearch
from .security import PathResolver
from .server import ApiServerOptions, ServerBindError, run_api_server

DIRECTORY_COLUMN_WIDTH = 33


def _port(value: str) -> int:
    """argparse type for TCP ports (0 picks a free port)."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from exc
    if not 0 <= parsed <= 65535:
        raise argparse.ArgumentTypeError("port must be between 0 and 65535")
    return parsed


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _open_registry() -> InstanceRegistry:
    return InstanceRegistry(REGISTRY_PATH)


def _existing_directory(raw: str | None) -> Path:
    root = Path(raw or ".").resolve()
    if not root.is_dir():
        raise SystemExit(f"Error: Not a directory: {root}")
    return root


def _effective_ignore(raw: str | None) -> list[str]:
    """Explicit ``--ignore`` wins over persisted default patterns."""
    if raw is not None:
        return parse_ignore_patterns(raw)
    return config.load_ignore_patterns()


def _effective_hidden(flag: bool) -> bool:
    return flag or config.load_show_hidden()


def truncate_path(path: str, max_len: int) -> str:
    """Keep the tail of ``path``, prefixing ``...`` when it is too long."""
    if len(path) <= max_len:
        return path
    return "..." + path[-(max_len - 3):]


def format_instance_table(instances: list[InstanceInfo]) -> str:
    lines = [
        "",
        "  PID     PORT   KIND   DIRECTORY                         MODE",
        "  " + "-" * 68,
    ]
    for instance in instances:
        pid = str(instance.pid).ljust(7)
        port = str(instance.port).ljust(6)
        kind = instance.kind.ljust(6)
        if instance.kind == "app":
            lines.append(f"  {pid} {port} {kind} -> {instance.api_url or 'unknown'}")
            continue
        directory = truncate_path(instance.root_path, DIRECTORY_COLUMN_WIDTH).ljust(DIRECTORY_COLUMN_WIDTH)
        mode = "read-only" if instance.readonly else "read-write"
        lines.append(f"  {pid} {port} {kind} {directory} {mode}")
    lines.append("")
    return "\n".join(lines) + "\n"


def _cmd_api(args: argparse.Namespace) -> None:
    root = _existing_directory(args.path)
    options = ApiServerOptions(
        root=root,
        port=args.port,
        host=args.host,
        readonly=args.readonly,
        show_hidden=_effective_hidden(args.hidden),
        ignore_patterns=_effective_ignore(args.ignore),
    )

    def announce(port: int) -> None:
        mode = "read-only" if options.readonly else "read-write"
        sys.stdout.write(f"Browsey API serving {root} ({mode}) on http://{options.host}:{port}\n")
        sys.stdout.write("Press Ctrl+C to stop\n")
        sys.stdout.flush()

    try:
        run_api_server(options, registry=_open_registry(), on_ready=announce)
    except ServerBindError as exc:
        raise SystemExit(f"Error: {exc}") from exc


def _cmd_list(args: argparse.Namespace) -> None:
    instances = _open_registry().list_instances()
    if args.json:
        sys.stdout.write(json.dumps([instance.to_dict() for instance in instances], indent=2) + "\n")
        return
    if not instances:
        sys.stdout.write("No running browsey instances found.\n")
        return
    sys.stdout.write(format_instance_table(instances))


def _stop_all(registry: InstanceRegistry, instances: list[InstanceInfo], force: bool) -> None:
    sys.stdout.write(f"Stopping {len(instances)} instance(s)...\n")
    stopped = 0
    for instance in instances:
        if registry.stop_instance(instance.pid, force):
            sys.stdout.write(f"  Stopped PID {instance.pid} ({instance.root_path})\n")
            stopped += 1
        else:
            sys.stdout.write(f"  PID {instance.pid} was already stopped\n")
    sys.stdout.write(f"Done. {stopped} instance(s) stopped.\n")


def _cmd_stop(args: argparse.Namespace) -> None:
    registry = _open_registry()
    instances = registry.list_instances()
    if not instances:
        sys.stdout.write("No running browsey instances found.\n")
        return

    if args.all:
        _stop_all(registry, instances, args.force)
        return

    if not args.target:
        raise SystemExit("Error: Please specify a target (PID, :port, or path) or use --all")

    matching = registry.find_all_matching_instances(args.target)
    if not matching:
        raise SystemExit(f'Error: No instance found matching "{args.target}"')
    if len(matching) > 1:
        sys.stdout.write(f"Found {len(matching)} matching instances:\n")
        for instance in matching:
            sys.stdout.write(f"  PID {instance.pid}: {instance.root_path} (port {instance.port})\n")
        sys.stdout.write("\nPlease be more specific or use --all to stop all instances.\n")
        raise SystemExit(1)

    instance = matching[0]
    if registry.stop_instance(instance.pid, args.force):
        sys.stdout.write(f"Stopped browsey instance (PID {instance.pid}) serving {instance.root_path}\n")
    else:
        sys.stdout.write(f"Instance (PID {instance.pid}) was already stopped\n")


def _cmd_search(args: argparse.Namespace) -> None:
    root = _existing_directory(args.root)
    results = FileSearch().search(
        root,
        args.query,
        show_hidden=_effective_hidden(args.hidden),
        ignore=create_ignore_matcher(_effective_ignore(args.ignore)),
        limit=args.limit,
    )
    if args.json:
        payload = {"query": args.query, "results": [result.to_dict() for result in results]}
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        return
    for result in results:
        suffix = "/" if result.type == "directory" else ""
        sys.stdout.write(f"{result.score:>5}  {result.path}{suffix}\n")


def _cmd_show(args: argparse.Namespace) -> None:
    root = _existing_directory(args.root)
    safe_path = PathResolver(root).resolve(args.path)
    if safe_path is None:
        raise SystemExit(f"Error: Access denied: Invalid path {args.path!r}")

    target = safe_path.full_path
    if not target.is_file():
        raise SystemExit(f"Error: File not found: /{safe_path.relative_path}")
    if target.stat().st_size > MAX_TEXT_SIZE:
        raise SystemExit(f"Error: File too large to preview: /{safe_path.relative_path}")

    source = sanitize_terminal_text(read_text(target))
    if not args.no_color and sys.stdout.isatty():
        source = colorize_source(source, target, args.style)
    sys.stdout.write(source)
    if source and not source.endswith("\n"):
        sys.stdout.write("\n")


def _cmd_config(args: argparse.Namespace) -> None:
    if args.show_hidden is not None:
        config.save_show_hidden(args.show_hidden == "on")
    if args.ignore is not None:
        config.save_ignore_patterns(parse_ignore_patterns(args.ignore))

    sys.stdout.write(f"config file:     {config.CONFIG_PATH}\n")
    sys.stdout.write(f"show hidden:     {'on' if config.load_show_hidden() else 'off'}\n")
    patterns = config.load_ignore_patterns()
    sys.stdout.write(f"ignore patterns: {', '.join(patterns) if patterns else '(none)'}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="browsey", description="Browse a directory tree from any device.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    api = subparsers.add_parser("api", help="Start the API server for a directory.")
    api.add_argument("path", nargs="?", default=None, help="Directory to serve. Defaults to current directory.")
    api.add_argument("-p", "--port", type=_port, default=DEFAULT_API_PORT, help="Port to listen on.")
    api.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to.")
    api.add_argument("-i", "--ignore", default=None, help="Ignore patterns (comma-separated).")
    api.add_argument("--hidden", action="store_true", help="Show hidden files.")
    api.add_argument(
        "--no-readonly", dest="readonly", action="store_false", help="Record the instance as read-write."
    )
    api.set_defaults(handler=_cmd_api)

    list_cmd = subparsers.add_parser("list", aliases=["ls"], help="List running browsey instances.")
    list_cmd.add_argument("--json", action="store_true", help="Output as JSON.")
    list_cmd.set_defaults(handler=_cmd_list)

    stop = subparsers.add_parser("stop", aliases=["kill"], help="Stop running browsey instances.")
    stop.add_argument("target", nargs="?", default=None, help="PID, :port, or path substring to match.")
    stop.add_argument("--all", action="store_true", help="Stop all instances.")
    stop.add_argument("--force", action="store_true", help="Use SIGKILL instead of SIGTERM.")
    stop.set_defaults(handler=_cmd_stop)

    search = subparsers.add_parser("search", help="Fuzzy-search file names under a directory.")
    search.add_argument("query", help="Search query.")
    search.add_argument("--root", default=None, help="Directory to search. Defaults to current directory.")
    search.add_argument("--limit", type=_positive_int, default=DEFAULT_SEARCH_LIMIT, help="Maximum results.")
    search.add_argument("-i", "--ignore", default=None, help="Ignore patterns (comma-separated).")
    search.add_argument("--hidden", action="store_true", help="Include hidden files.")
    search.add_argument("--json", action="store_true", help="Output as JSON.")
    search.set_defaults(handler=_cmd_search)

    show = subparsers.add_parser("show", help="Print a file from inside a root with syntax highlighting.")
    show.add_argument("path", help="Path relative to the root.")
    show.add_argument("--root", default=None, help="Root directory. Defaults to current directory.")
    show.add_argument("--style", default=DEFAULT_STYLE, help="Pygments style name.")
    show.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    show.set_defaults(handler=_cmd_show)

    config_cmd = subparsers.add_parser("config", help="Show or update persisted preferences.")
    config_cmd.add_argument("--show-hidden", choices=("on", "off"), default=None, help="Default hidden-file visibility.")
    config_cmd.add_argument("--ignore", default=None, help="Default ignore patterns (comma-separated, empty clears).")
    config_cmd.set_defaults(handler=_cmd_config)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the selected subcommand."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    args.handler(args)


if __name__ == "__main__":
    main()
