# Structured logging for the offset worker
import sys
import logging
import structlog
from typing import Optional

from core.config.settings import Settings

# Global flag to prevent duplicate logging configuration
_logging_configured = False


def configure_logging(settings: Settings) -> None:
    """Configure stdlib logging and structlog from settings."""
    global _logging_configured

    # Prevent duplicate configuration
    if _logging_configured:
        return

    level = logging.getLevelName(settings.logging.level.upper())
    if not isinstance(level, int):
        # Unknown names are reported by the startup validator
        level = logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    # aiokafka is chatty at INFO about group coordination
    logging.getLogger("aiokafka").setLevel(max(level, logging.WARNING))

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.logging.json_format
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _logging_configured = True


def reset_logging_configuration() -> None:
    """Allow configure_logging to run again (used by tests)."""
    global _logging_configured
    _logging_configured = False
    structlog.reset_defaults()


def get_logger(name: str, component: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance, optionally bound to a component.

    The logger stays lazy until first use, so module-level loggers pick up
    the configuration applied later by configure_logging.
    """
    if component:
        return structlog.get_logger(name, component=component)
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "reset_logging_configuration",
    "get_logger",
]
