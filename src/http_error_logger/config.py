import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Literal, Mapping, Optional

from .classifier import ErrorClassifier, ErrorPredicate, always_loggable
from .exceptions import ConfigurationError
from .headers import HeaderFilterConfig

if TYPE_CHECKING:
    from .logger import Sink

FormatterType = Literal["json", "plain"]
OutputType = Literal["console", "file", "both"]

_ENV_PREFIX = "HTTP_ERROR_LOG_"


def _parse_bool_env(key: str, default: str = "false") -> bool:
    """Parse boolean from environment variable"""
    return os.getenv(key, default).lower() == "true"


def _parse_list_env(key: str) -> Optional[List[str]]:
    """Parse a comma separated list, empty values become None"""
    raw = os.getenv(key, "")
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or None


@dataclass
class LoggerConfig:
    """Configuration for the default stdlib logging sink"""

    log_level: str = "ERROR"
    include_timestamp: bool = True
    formatter_type: FormatterType = "json"
    output_type: OutputType = "console"
    filename: str = "http-errors.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self):
        if self.formatter_type not in ("json", "plain"):
            raise ConfigurationError(
                "formatter_type", f"expected 'json' or 'plain', got {self.formatter_type!r}"
            )
        if self.output_type not in ("console", "file", "both"):
            raise ConfigurationError(
                "output_type",
                f"expected 'console', 'file' or 'both', got {self.output_type!r}",
            )

    @classmethod
    def from_env(cls) -> "LoggerConfig":
        """Create configuration from environment variables"""
        formatter_type = os.getenv(f"{_ENV_PREFIX}FORMATTER", "json").lower()
        if formatter_type not in ["json", "plain"]:
            formatter_type = "json"

        try:
            max_bytes = int(os.getenv(f"{_ENV_PREFIX}MAX_BYTES", "10485760"))
            backup_count = int(os.getenv(f"{_ENV_PREFIX}BACKUP_COUNT", "5"))
        except ValueError as e:
            raise ConfigurationError("HTTP_ERROR_LOG_MAX_BYTES/BACKUP_COUNT", str(e))

        return cls(
            log_level=os.getenv(f"{_ENV_PREFIX}LEVEL", "ERROR"),
            include_timestamp=_parse_bool_env(f"{_ENV_PREFIX}TIMESTAMP", "true"),
            formatter_type=formatter_type,
            output_type=os.getenv(f"{_ENV_PREFIX}OUTPUT", "console").lower(),
            filename=os.getenv(f"{_ENV_PREFIX}FILENAME", "http-errors.log"),
            max_bytes=max_bytes,
            backup_count=backup_count,
        )


_default_config: Optional[LoggerConfig] = None


def get_default_config() -> LoggerConfig:
    """Get the default configuration instance"""
    global _default_config
    if _default_config is None:
        _default_config = LoggerConfig.from_env()
    return _default_config


def set_default_config(config: Optional[LoggerConfig]) -> None:
    """Set the default configuration instance"""
    global _default_config
    _default_config = config


# hapi style option names accepted by ErrorLoggerConfig.from_options
_OPTION_ALIASES = {
    "logger": "logger",
    "whitelistRequestHeaders": "whitelist_request_headers",
    "blacklistRequestHeaders": "blacklist_request_headers",
    "whitelistResponseHeaders": "whitelist_response_headers",
    "blacklistResponseHeaders": "blacklist_response_headers",
    "isLoggableError": "is_loggable_error",
    "isLoggableRequestError": "is_loggable_request_error",
    "deduplicate": "deduplicate",
    "logServerErrors": "log_server_errors",
}


@dataclass
class ErrorLoggerConfig:
    """Configuration for the error logger, fixed once at registration"""

    logger: Optional["Sink"] = None
    logger_name: str = "http_error_logger.errors"
    logger_config: Optional[LoggerConfig] = None

    # Header filtering
    whitelist_request_headers: Optional[List[str]] = None
    blacklist_request_headers: Optional[List[str]] = None
    whitelist_response_headers: Optional[List[str]] = None
    blacklist_response_headers: Optional[List[str]] = None

    # Classification
    is_loggable_error: ErrorPredicate = always_loggable
    is_loggable_request_error: Optional[ErrorPredicate] = None

    # Triggers
    deduplicate: bool = False
    log_server_errors: bool = True
    server_log_channels: Optional[List[str]] = None

    def __post_init__(self):
        if self.logger is not None and not callable(getattr(self.logger, "error", None)):
            raise ConfigurationError(
                "logger", "the logger must expose an error(record, message) method"
            )
        if self.is_loggable_error is None:
            self.is_loggable_error = always_loggable
        for option in ("is_loggable_error", "is_loggable_request_error"):
            predicate = getattr(self, option)
            if predicate is not None and not callable(predicate):
                raise ConfigurationError(option, "expected a callable predicate")

    @property
    def request_filter(self) -> HeaderFilterConfig:
        return HeaderFilterConfig.from_lists(
            self.whitelist_request_headers, self.blacklist_request_headers
        )

    @property
    def response_filter(self) -> HeaderFilterConfig:
        return HeaderFilterConfig.from_lists(
            self.whitelist_response_headers, self.blacklist_response_headers
        )

    @property
    def classifier(self) -> ErrorClassifier:
        return ErrorClassifier(self.is_loggable_error)

    @property
    def request_classifier(self) -> ErrorClassifier:
        """Classifier for out-of-band request errors"""
        return ErrorClassifier(self.is_loggable_request_error or self.is_loggable_error)

    def resolve_sink(self) -> "Sink":
        """Return the configured sink, or a stdlib logging sink"""
        if self.logger is not None:
            return self.logger

        from .logger import StructuredSink, get_logger

        return StructuredSink(get_logger(self.logger_name, self.logger_config))

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ErrorLoggerConfig":
        """
        Create configuration from a registration options mapping

        Both the camelCase option names used by hapi plugins and the
        snake_case field names are accepted. ``logger`` is required.
        """
        values = {}
        field_names = set(cls.__dataclass_fields__)
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in field_names:
                raise ConfigurationError(key, "unknown option")
            if name in values:
                raise ConfigurationError(key, f"given more than once (as '{name}')")
            values[name] = value

        if values.get("logger") is None:
            raise ConfigurationError("logger", "a logger is required")

        return cls(**values)

    @classmethod
    def from_env(cls, logger: Optional["Sink"] = None) -> "ErrorLoggerConfig":
        """Create configuration from environment variables"""
        return cls(
            logger=logger,
            logger_name=os.getenv(f"{_ENV_PREFIX}LOGGER_NAME", "http_error_logger.errors"),
            logger_config=LoggerConfig.from_env(),
            whitelist_request_headers=_parse_list_env(
                f"{_ENV_PREFIX}WHITELIST_REQUEST_HEADERS"
            ),
            blacklist_request_headers=_parse_list_env(
                f"{_ENV_PREFIX}BLACKLIST_REQUEST_HEADERS"
            ),
            whitelist_response_headers=_parse_list_env(
                f"{_ENV_PREFIX}WHITELIST_RESPONSE_HEADERS"
            ),
            blacklist_response_headers=_parse_list_env(
                f"{_ENV_PREFIX}BLACKLIST_RESPONSE_HEADERS"
            ),
            deduplicate=_parse_bool_env(f"{_ENV_PREFIX}DEDUPLICATE"),
            log_server_errors=_parse_bool_env(f"{_ENV_PREFIX}SERVER_ERRORS", "true"),
            server_log_channels=_parse_list_env(f"{_ENV_PREFIX}SERVER_LOG_CHANNELS"),
        )
