from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import structlog

LOG_FILENAME = "doctor_quest.log"


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    logs_dir: Optional[Path] = None,
) -> None:
    """
    Initialize Python logging and structlog with consistent formatting.

    Stdlib records go to stderr and, when `logs_dir` is given, to
    `<logs_dir>/doctor_quest.log` as well. structlog gets a console or JSON
    renderer and the same level filter, so the controller's stdlib loggers and
    the CLI's structlog loggers agree on what is emitted.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logs_dir / LOG_FILENAME, encoding="utf-8"))
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger that inherits the global configuration."""
    return structlog.get_logger(name)
