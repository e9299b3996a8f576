"""
Autocluster Logging

structlog setup for the pipeline. Modules log through
``structlog.get_logger(__name__)``; this module only decides where those
events go and at which level.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from autocluster.config import AutoclusterConfig

logger = structlog.get_logger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}
_DEFAULT_LEVEL = "info"


def configure_logging(level: str = _DEFAULT_LEVEL, json_format: bool = True) -> None:
    """Route structlog events through stdlib logging at *level*."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(_LEVELS.get(level, logging.INFO))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def maybe_set_default_log_level(config: AutoclusterConfig) -> str:
    """
    Apply ``AUTOCLUSTER_LOG_LEVEL``.

    Unknown level names fall back to ``info``. Returns the level applied.
    """
    level = config.log_level
    if level not in _LEVELS:
        configure_logging(_DEFAULT_LEVEL)
        logger.warning(
            "autocluster.invalid_log_level",
            level=level,
            fallback=_DEFAULT_LEVEL,
        )
        return _DEFAULT_LEVEL
    configure_logging(level)
    return level
