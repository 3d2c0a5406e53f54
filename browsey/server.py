"""Read-only JSON API over one served root.

Routes resolve every client path through ``PathResolver`` first and answer
403 when resolution fails. ``run_api_server`` ties the server lifetime to a
registry entry so ``browsey list``/``browsey stop`` can find it.
"""

from __future__ import annotations

import logging
import os
import signal
import stat as stat_module
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlencode

from flask import Blueprint, Flask, current_app, jsonify, request, send_file
from werkzeug.serving import make_server

from . import __version__
from .config import DEFAULT_API_PORT, DEFAULT_HOST, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_DEPTH, MAX_SEARCH_LIMIT
from .ignore import create_ignore_matcher
from .highlight import read_text
from .listing import list_directory, stat_path
from .registry import InstanceInfo, InstanceRegistry
from .search import FileSearch
from .search.files import file_extension
from .security import PathResolver
from .viewable import viewable_type

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


class ServerBindError(OSError):
    """The listening socket could not be bound."""


@dataclass
class ApiServerOptions:
    root: Path
    port: int = DEFAULT_API_PORT
    host: str = DEFAULT_HOST
    readonly: bool = True
    show_hidden: bool = False
    ignore_patterns: list[str] = field(default_factory=list)
    max_search_depth: int = MAX_SEARCH_DEPTH


def _options() -> ApiServerOptions:
    return current_app.config["BROWSEY_OPTIONS"]


def _resolve(request_path: str):
    return PathResolver(_options().root).resolve(request_path)


def _access_denied():
    return jsonify({"error": "Access denied: Invalid path"}), 403


def _parse_limit(raw: str | None) -> int:
    try:
        limit = int(raw) if raw else DEFAULT_SEARCH_LIMIT
    except ValueError:
        limit = DEFAULT_SEARCH_LIMIT
    return max(1, min(limit, MAX_SEARCH_LIMIT))


@api_bp.route("/info")
def info():
    options = _options()
    return jsonify(
        {
            "root": str(options.root),
            "readonly": options.readonly,
            "showHidden": options.show_hidden,
            "version": __version__,
        }
    )


@api_bp.route("/list")
def list_route():
    safe_path = _resolve(request.args.get("path") or "/")
    if safe_path is None:
        return _access_denied()

    options = _options()
    # The query flag can only reveal hidden entries, never hide them.
    show_hidden = request.args.get("hidden") == "1" or options.show_hidden
    try:
        listing = list_directory(safe_path, show_hidden, create_ignore_matcher(options.ignore_patterns))
    except FileNotFoundError:
        return jsonify({"error": "Directory not found"}), 404
    except NotADirectoryError:
        return jsonify({"error": "Path is not a directory"}), 400
    except PermissionError:
        return jsonify({"error": "Permission denied"}), 403
    except OSError:
        logger.exception("Listing %s failed", safe_path.full_path)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(listing.to_dict())


@api_bp.route("/search")
def search_route():
    query = request.args.get("q") or ""
    limit = _parse_limit(request.args.get("limit"))
    if not query:
        return jsonify({"query": "", "results": []})

    safe_path = _resolve(request.args.get("path") or "/")
    if safe_path is None:
        return _access_denied()
    if not safe_path.full_path.is_dir():
        return jsonify({"error": "Directory not found"}), 404

    options = _options()
    results = FileSearch(max_depth=options.max_search_depth).search(
        safe_path.full_path,
        query,
        show_hidden=options.show_hidden,
        ignore=create_ignore_matcher(options.ignore_patterns),
        limit=limit,
    )
    return jsonify({"query": query, "results": [result.to_dict() for result in results]})


@api_bp.route("/file")
def file_route():
    request_path = request.args.get("path")
    if not request_path:
        return jsonify({"error": "Path parameter required"}), 400

    safe_path = _resolve(request_path)
    if safe_path is None:
        return _access_denied()

    try:
        mode = os.stat(safe_path.full_path).st_mode
    except FileNotFoundError:
        return jsonify({"error": "File not found"}), 404
    except PermissionError:
        return jsonify({"error": "Permission denied"}), 403
    if not stat_module.S_ISREG(mode):
        return jsonify({"error": "Path is not a file"}), 400

    download = request.args.get("download") != "false"
    return send_file(safe_path.full_path, as_attachment=download, download_name=safe_path.full_path.name)


@api_bp.route("/view")
def view_route():
    request_path = request.args.get("path")
    if not request_path:
        return jsonify({"error": "Path parameter required"}), 400

    safe_path = _resolve(request_path)
    if safe_path is None:
        return _access_denied()

    target = safe_path.full_path
    try:
        stat = os.stat(target)
        if stat_module.S_ISDIR(stat.st_mode):
            return jsonify({"error": "Cannot view directory"}), 400

        extension = file_extension(target.name)
        kind = viewable_type(extension, stat.st_size)
        if kind is None:
            return jsonify({"error": "File type not viewable"}), 400

        payload = {"type": kind, "filename": target.name, "extension": extension, "size": stat.st_size}
        if kind == "text":
            payload["content"] = read_text(target)
        else:
            payload["url"] = f"/api/file?{urlencode({'path': request_path, 'download': 'false'})}"
    except FileNotFoundError:
        return jsonify({"error": "File not found"}), 404
    except PermissionError:
        return jsonify({"error": "Permission denied"}), 403
    except OSError:
        logger.exception("Viewing %s failed", target)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(payload)


@api_bp.route("/stat")
def stat_route():
    request_path = request.args.get("path")
    if not request_path:
        return jsonify({"error": "Path parameter required"}), 400

    safe_path = _resolve(request_path)
    if safe_path is None:
        return _access_denied()

    try:
        path_stat = stat_path(safe_path)
    except FileNotFoundError:
        return jsonify({"error": "Path not found"}), 404
    except PermissionError:
        return jsonify({"error": "Permission denied"}), 403
    except OSError:
        logger.exception("Stat of %s failed", safe_path.full_path)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(path_stat.to_dict())


def create_app(options: ApiServerOptions) -> Flask:
    """Create the Flask application serving ``options.root``."""
    app = Flask(__name__)
    app.config["BROWSEY_OPTIONS"] = options
    app.json.sort_keys = False
    app.register_blueprint(api_bp, url_prefix="/api")
    return app


def _raise_system_exit(signum, frame) -> None:
    raise SystemExit(0)


def run_api_server(
    options: ApiServerOptions,
    registry: InstanceRegistry | None = None,
    on_ready: Callable[[int], None] | None = None,
) -> None:
    """Serve until interrupted, registered in ``registry`` for the duration.

    Binding happens before registration so the recorded port is the real
    one (``port=0`` picks a free port); ``on_ready`` receives that port.
    ``SIGTERM`` from ``browsey stop`` unwinds through the same cleanup as
    Ctrl+C.
    """
    if registry is None:
        registry = InstanceRegistry()

    app = create_app(options)
    try:
        server = make_server(options.host, options.port, app, threaded=True)
    except OSError as exc:
        raise ServerBindError(f"Could not bind {options.host}:{options.port}: {exc}") from exc
    port = server.server_port
    pid = os.getpid()

    try:
        registry.register(
            InstanceInfo(
                pid=pid,
                port=port,
                host=options.host,
                kind="api",
                root_path=str(options.root),
                started_at=datetime.now(timezone.utc).isoformat(),
                readonly=options.readonly,
                version=__version__,
                show_hidden=options.show_hidden,
                ignore_patterns=list(options.ignore_patterns),
            )
        )
    except OSError as exc:
        logger.warning("Could not register instance, it will not show up in `browsey list`: %s", exc)

    previous_handler = signal.signal(signal.SIGTERM, _raise_system_exit)
    logger.info("Serving %s on http://%s:%s", options.root, options.host, port)
    if on_ready is not None:
        on_ready(port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        signal.signal(signal.SIGTERM, previous_handler)
        try:
            registry.deregister(pid)
        except OSError as exc:
            logger.warning("Could not deregister instance pid=%s: %s", pid, exc)
