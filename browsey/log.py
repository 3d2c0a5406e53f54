"""Process-wide logging setup for CLI entrypoints."""

from __future__ import annotations

import logging
import sys

_HANDLER_NAME = "browsey"


def setup_logging(level: int = logging.WARNING) -> None:
    """Install one stderr handler on the root logger.

    Repeated calls only adjust the level, so tests and nested entrypoints do
    not stack duplicate handlers.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root_logger.addHandler(handler)
