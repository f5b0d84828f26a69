"""
Structured logging for the nose cone generator.

Uses structlog (https://www.structlog.org/) on top of the ``nosecone``
stdlib logger. G-code may be written to stdout, so log output always goes to
stderr; an optional log file receives the same events as JSON lines.

Every event carries the run context bound by the pipeline (parameter file,
shape), so log lines from the walkers and the builder can be traced back to
the cone being generated.

Usage::

    from nosecone.core.logging import configure_logging, get_logger

    configure_logging(level="INFO")  # Call once at startup
    logger = get_logger(__name__)
    logger.info("toolpath_built", events=18250, filament_mm=1432.7)
"""

import logging
import sys
from typing import Optional

import structlog

LOGGER_NAME = "nosecone"

# Processors applied to every event before rendering
_EVENT_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
]


def _formatter(renderer: structlog.types.Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Route generator log events to stderr and, optionally, a JSON log file.

    Only the ``nosecone`` logger tree is configured; the root logger and
    other libraries are left alone. Calling this again replaces the handlers.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        json_output: Render stderr lines as JSON instead of console text.
        log_file: Path of a file that receives every event as a JSON line.

    Raises:
        ValueError: If *level* is not a logging level name.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    if json_output:
        stderr_renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        stderr_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(stderr_renderer))
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    structlog.configure(
        processors=[
            # Skip the chain entirely for events below the level, e.g. per-step debug
            structlog.stdlib.filter_by_level,
            *_EVENT_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for a module under the ``nosecone`` package."""
    return structlog.get_logger(name)


def bind_run_context(**values: object) -> None:
    """
    Start a new run context.

    Every event logged afterwards (from any module) carries these key/value
    pairs, e.g. the parameter file of the cone being generated.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def add_run_context(**values: object) -> None:
    """Add entries to the current run context, e.g. the shape once it is known."""
    structlog.contextvars.bind_contextvars(**values)
