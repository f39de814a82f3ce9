"""Structured logging setup.

Library modules log through structlog and never print. Events are routed
to stdlib logging so the host application decides where they go; the CLI
is the only place that installs a handler and writes user-facing output.
"""

from __future__ import annotations

import logging
import sys

import structlog


def get_logger(name: str = "consensus_rank"):
    """Get a structured logger instance.

    Usage:
        logger = get_logger(__name__).bind(component="ranking")
        logger.info("ranked items", strategy="wilson", count=12)
    """
    return structlog.get_logger(name)


def _configure_structlog(json_output: bool = False) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def ensure_configured() -> None:
    """Route structlog through stdlib logging unless the host already set it up."""
    if not structlog.is_configured():
        _configure_structlog()


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """Install a stderr handler and configure structlog output.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_output: Emit JSON lines instead of key=value pairs
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )
    _configure_structlog(json_output)
