from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(levelname)s | %(message)s"


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()

    # Uvicorn may install handlers before the lifespan runs; basicConfig() is a
    # no-op then, so levels are set on the existing tree instead.
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    root_logger.setLevel(level)
    logging.getLogger("lettersynth").setLevel(level)


def configure_console_logging(debug: bool = False, stream: TextIO | None = None) -> None:
    """Log to stderr for the command loop so diagnostics never mix with the prompt."""
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    package_logger = logging.getLogger("lettersynth")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
