# src/streamharness/core/logging.py
"""Structured logging for harness runs.

The harness logs from two kinds of thread: the test's driving thread
(lifecycle, snapshot/restore) and the time-service worker (timer failures,
shutdown). Every line therefore carries ``thread_name`` so interleavings can
be read back from the log.

Logging stays silent until configured. Test suites opt in through the
environment:

    STREAMHARNESS_LOG_LEVEL=DEBUG STREAMHARNESS_LOG_FORMAT=json pytest

which tests/conftest.py applies via configure_logging_from_env().
"""

import logging
import os
import sys
from collections.abc import Mapping
from typing import Any, TextIO

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.stdlib import ProcessorFormatter

LOG_LEVEL_ENV = "STREAMHARNESS_LOG_LEVEL"
LOG_FORMAT_ENV = "STREAMHARNESS_LOG_FORMAT"

# Name of the root handler installed by configure_logging(); reconfiguring
# replaces it and leaves other handlers (e.g. pytest's capture) in place
HANDLER_NAME = "streamharness"


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        CallsiteParameterAdder({CallsiteParameter.THREAD_NAME}),
        structlog.processors.StackInfoRenderer(),
    ]


def _parse_level(level: str) -> int:
    levels = logging.getLevelNamesMapping()
    try:
        return levels[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level {level!r}; expected one of {sorted(levels)}") from None


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Operators that log with ``logging.getLogger(__name__)`` end up in the
    same format as the harness's own structlog events.

    Args:
        json_output: One JSON object per line instead of console key=value.
        level: Root log level name (DEBUG, INFO, WARNING, ...).
        stream: Destination; defaults to sys.stderr at call time.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    log_level = _parse_level(level)
    shared = _shared_processors()

    renderers: list[Any]
    if json_output:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, *renderers],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)


def configure_logging_from_env(environ: Mapping[str, str] = os.environ) -> bool:
    """Apply configure_logging() when STREAMHARNESS_LOG_LEVEL is set.

    STREAMHARNESS_LOG_FORMAT selects ``json`` or ``console`` (the default).

    Returns:
        True if logging was configured.

    Raises:
        ValueError: On an unknown level or format.
    """
    level = environ.get(LOG_LEVEL_ENV)
    if not level:
        return False
    log_format = environ.get(LOG_FORMAT_ENV, "console").lower()
    if log_format not in ("json", "console"):
        raise ValueError(f"{LOG_FORMAT_ENV} must be 'json' or 'console', got {log_format!r}")
    configure_logging(json_output=log_format == "json", level=level)
    return True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module (typically ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
