import logging
import logging.handlers
import sys
from typing import Any, Dict, Mapping, Optional, Protocol

from .config import LoggerConfig, get_default_config
from .formatter import PlainTextFormatter, StructuredFormatter

# Performance optimization: Cache formatter instances
_formatter_cache: Dict[str, logging.Formatter] = {}


class Sink(Protocol):
    """Logging destination receiving (record, message)"""

    def error(self, record: Mapping[str, Any], message: str) -> Any:
        ...


def _get_formatter_cache_key(config: LoggerConfig) -> str:
    """Generate cache key for formatter"""
    return f"{config.formatter_type}_{config.include_timestamp}"


def _get_or_create_formatter(config: LoggerConfig) -> logging.Formatter:
    """Get formatter from cache or create new one"""
    cache_key = _get_formatter_cache_key(config)

    if cache_key not in _formatter_cache:
        if config.formatter_type == "plain":
            formatter = PlainTextFormatter(config)
        else:  # default to json
            formatter = StructuredFormatter(config)
        _formatter_cache[cache_key] = formatter

    return _formatter_cache[cache_key]


def _add_console_handler(logger: logging.Logger, config: LoggerConfig, formatter: logging.Formatter) -> None:
    """Add console handler if required"""
    if config.output_type in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def _add_file_handler(logger: logging.Logger, config: LoggerConfig, formatter: logging.Formatter) -> None:
    """Add file handler if required"""
    if config.output_type in ("file", "both"):
        file_handler = logging.handlers.RotatingFileHandler(
            config.filename,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def get_logger(name: str, config: Optional[LoggerConfig] = None) -> logging.Logger:
    """Create a structured logger with the given name"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        config = config or get_default_config()
        logger.setLevel(getattr(logging, config.log_level.upper()))

        formatter = _get_or_create_formatter(config)

        _add_console_handler(logger, config, formatter)
        _add_file_handler(logger, config, formatter)

        logger.propagate = True

    return logger


class StructuredSink:
    """
    Sink writing error records through a stdlib logger

    Each top level key of the record becomes a ``ctx_`` field on the
    LogRecord, which the structured formatters render.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def error(self, record: Mapping[str, Any], message: str) -> None:
        extra = {f"ctx_{key}": value for key, value in record.items() if value is not None}
        self.logger.error(message, extra=extra)

    def __repr__(self) -> str:
        return f"StructuredSink({self.logger.name!r})"
