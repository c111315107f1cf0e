from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_CONFIGURED_TARGET: str | None = None


def setup_logging(filename: str | Path | None = None, level: int | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the repo_viewer package.

    The terminal front end shares stderr with the logs, so without a log file
    only warnings and errors are emitted. Calling again with a different
    target reconfigures the handlers.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Optional logging level. Defaults to INFO for a file, WARNING for stderr.

    Returns:
        A structlog logger instance configured for the repo_viewer package.
    """
    global _CONFIGURED_TARGET  # noqa: PLW0603
    if level is None:
        level = logging.INFO if filename else logging.WARNING
    target = f"{filename or '<stderr>'}:{level}"
    if target != _CONFIGURED_TARGET:
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=level,
            handlers=handlers,
            format="%(message)s",
            force=True,
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _CONFIGURED_TARGET = target

    return structlog.get_logger("repo_viewer")


logger = setup_logging()
