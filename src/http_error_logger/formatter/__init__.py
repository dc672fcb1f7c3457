"""
Record formatting and log output formatters
"""

from .json_formatter import StructuredFormatter
from .record import (
    ERROR_SUFFIX,
    REQUEST_ERROR_SUFFIX,
    SERVER_ERROR_MESSAGE,
    FormattedRecord,
    LogRecord,
    format_record,
    format_server_event,
    stringify_request,
)
from .text_formatter import PlainTextFormatter

__all__ = [
    "ERROR_SUFFIX",
    "REQUEST_ERROR_SUFFIX",
    "SERVER_ERROR_MESSAGE",
    "FormattedRecord",
    "LogRecord",
    "format_record",
    "format_server_event",
    "stringify_request",
    "StructuredFormatter",
    "PlainTextFormatter",
]
