"""
Structured logging for repokb.

structlog is routed through the standard ``logging`` module, so ingestion
events land in whatever handler the entry point installs: the console for
``repokb serve``, a file for ``repokb ingest --log``, or nothing at all.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

_SHARED_PROCESSORS: tuple[Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _configure_structlog(min_level: int) -> None:
    structlog.configure(
        processors=_SHARED_PROCESSORS + (ProcessorFormatter.wrap_for_formatter,),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _formatter(json_output: bool = False) -> ProcessorFormatter:
    return ProcessorFormatter(
        processor=_renderer(json_output), foreign_pre_chain=_SHARED_PROCESSORS
    )


def configure_logging(
    level: int = logging.INFO,
    enable_console: bool = True,
    json_output: bool = False,
) -> None:
    """
    Configure global logging.

    Parameters
    ----------
    level:
        Minimum severity for both structlog and the root logger.
    enable_console:
        When False, log records are discarded instead of written to stderr.
    json_output:
        Render one JSON object per line instead of the console format.
    """
    _configure_structlog(level)
    logging.captureWarnings(True)

    if enable_console:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_formatter(json_output))
    else:
        handler = logging.NullHandler()

    logging.basicConfig(level=level, handlers=[handler], force=True)


def get_logger(name: Optional[str] = None) -> BoundLogger:
    """Retrieve a structlog logger with the provided name."""
    return structlog.get_logger(name)


def redirect_logging_to_file(path: Path, level: int = logging.INFO) -> None:
    """Send every log record to ``path``, replacing existing root handlers."""
    _configure_structlog(level)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setFormatter(_formatter())
    root.addHandler(file_handler)
    root.setLevel(level)
