"""
HTTP Error Logger

Turns failed HTTP requests into structured, header-filtered log records and
hands them to an injected logger as ``logger.error(record, message)``.
"""

__version__ = "1.0.0"

from .classifier import ErrorClassifier, always_loggable, status_at_least
from .config import (
    ErrorLoggerConfig,
    FormatterType,
    LoggerConfig,
    OutputType,
    get_default_config,
    set_default_config,
)
from .exceptions import ConfigurationError, HTTPErrorLoggerError
from .formatter import (
    ERROR_SUFFIX,
    REQUEST_ERROR_SUFFIX,
    SERVER_ERROR_MESSAGE,
    FormattedRecord,
    LogRecord,
    PlainTextFormatter,
    StructuredFormatter,
    format_record,
    format_server_event,
    stringify_request,
)
from .headers import HeaderFilterConfig, filter_headers
from .host import (
    CallbackHost,
    ErrorResponse,
    HostServer,
    RawRequest,
    RequestErrorEvent,
    ServerLogBridge,
    ServerLogEvent,
    is_error_response,
)
from .interceptor import ErrorLogger
from .logger import Sink, StructuredSink, get_logger
from .serializers import ErrorLogJSONEncoder, SerializationConfig, serialize_for_logging
from .snapshot import (
    RequestSnapshot,
    ResponseSnapshot,
    iso_timestamp,
    normalize_request,
    normalize_response,
)

__all__ = [
    # Configuration
    "ErrorLoggerConfig",
    "LoggerConfig",
    "FormatterType",
    "OutputType",
    "get_default_config",
    "set_default_config",
    "ConfigurationError",
    "HTTPErrorLoggerError",
    # Core
    "HeaderFilterConfig",
    "filter_headers",
    "RequestSnapshot",
    "ResponseSnapshot",
    "iso_timestamp",
    "normalize_request",
    "normalize_response",
    "ErrorClassifier",
    "always_loggable",
    "status_at_least",
    "LogRecord",
    "FormattedRecord",
    "format_record",
    "format_server_event",
    "stringify_request",
    "ERROR_SUFFIX",
    "REQUEST_ERROR_SUFFIX",
    "SERVER_ERROR_MESSAGE",
    "ErrorLogger",
    # Host server
    "HostServer",
    "CallbackHost",
    "RawRequest",
    "ErrorResponse",
    "RequestErrorEvent",
    "ServerLogEvent",
    "ServerLogBridge",
    "is_error_response",
    # Output
    "Sink",
    "StructuredSink",
    "get_logger",
    "StructuredFormatter",
    "PlainTextFormatter",
    "ErrorLogJSONEncoder",
    "SerializationConfig",
    "serialize_for_logging",
]
