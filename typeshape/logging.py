"""Structured Logging for typeshape

structlog on top of the standard library:
- Colored, human-readable console output
- JSON structured output
- Shared processor chain for third-party stdlib loggers
- Domain logger registry

The engine never configures logging on import; applications call
configure_logging() once at startup.
"""
import logging
import sys
from typing import TextIO

import structlog
from structlog.types import EventDict, Processor


def _add_library_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that adds library metadata."""
    event_dict.setdefault("library", "typeshape")
    return event_dict


def _truncate_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that shortens oversized reprs of offending input values."""
    for key, value in event_dict.items():
        if key == "value" and not isinstance(value, (int, float, bool)):
            text = repr(value)
            event_dict[key] = text if len(text) <= 120 else text[:117] + "..."
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both console and JSON configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_library_info,
        _truncate_values,
    ]


def configure_logging(
    level: str | None = None, json_logs: bool | None = None, stream: TextIO | None = None
) -> None:
    """Configure the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to Settings.LOG_LEVEL.
        json_logs: If True, output JSON format. If False, colored console output.
            Defaults to Settings.LOG_JSON.
        stream: Where the root handler writes. Defaults to sys.stdout.
    """
    from typeshape.config import get_settings

    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    # Formatter for stdlib logger (handles logs from third-party libs)
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to the current logging context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class LoggerRegistry:
    """Registry of pre-configured loggers for the engine's domains."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        """Get or create a logger for the given domain."""
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"typeshape.{name}")
        return cls._loggers[name]


def types_logger() -> structlog.stdlib.BoundLogger:
    """Logger for type construction events."""
    return LoggerRegistry.get("types")


def derivation_logger() -> structlog.stdlib.BoundLogger:
    """Logger for auto-derivation events."""
    return LoggerRegistry.get("derivation")


def boundary_logger() -> structlog.stdlib.BoundLogger:
    """Logger for boundary parsing events."""
    return LoggerRegistry.get("boundaries")
