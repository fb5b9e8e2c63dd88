"""
structlog setup shared by the API server and the CLI.

The activity log (``LogSink``) is mirrored through the ``activity`` logger;
everything else uses stdlib ``logging.getLogger(__name__)`` and is rendered by
the same formatter.
"""

import logging
import sys
from typing import IO, Optional

import structlog

from .config import settings

NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "openai")


def setup_logging(
    log_level: Optional[str] = None,
    *,
    json_logs: Optional[bool] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure structlog over stdlib logging.

    Args:
        log_level: Override log level (default: from settings.log_level)
        json_logs: Force JSON lines on or off. By default DEBUG renders for the
            console and every other level emits JSON.
        stream: Output stream, stderr unless given
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_logs is None:
        json_logs = level != logging.DEBUG

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=(stream or sys.stderr).isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
