"""Logging setup for entry points."""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json: bool = False, stream=None) -> None:
    """
    Route structlog through stdlib logging.

    Library modules only call ``structlog.get_logger()``; scripts call this
    once at startup.

    Args:
        level: Stdlib level name
        json: Render events as JSON lines instead of console output
        stream: Output stream, stderr by default
    """
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
