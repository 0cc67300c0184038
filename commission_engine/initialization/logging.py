"""
Initialization - Logging Module.

Module: logging.py
Configures loguru for the commission engine.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from commission_engine.config.settings import settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[service]}</cyan> | "
    "{message}"
)


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure stderr and file sinks.

    Args:
        level: Minimum level (LOG_LEVEL when omitted)
        log_file: Rotating log file (LOG_FILE when omitted, disabled if empty)
    """
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    logger.configure(extra={"service": "engine"})
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            format=LOG_FORMAT,
            encoding="utf-8",
        )

    logger.info(f"Logging configured (level={level})")
