"""
Interception layer

Runs classify -> normalize -> filter -> format -> sink for each trigger a
host server dispatches:

- response finalization (Trigger A): error responses, message suffix ``ERROR``
- out-of-band request errors (Trigger B): message suffix ``REQUEST ERROR``
- server log events tagged ``error`` (Trigger C): forwarded unfiltered with
  the message ``Server error!``

Nothing is kept between calls. Classifier and sink exceptions propagate.
"""

import inspect
import logging
from typing import Any, Optional

from .config import ErrorLoggerConfig
from .formatter.record import (
    ERROR_SUFFIX,
    REQUEST_ERROR_SUFFIX,
    FormattedRecord,
    format_record,
    format_server_event,
)
from .host import (
    HostServer,
    RawRequest,
    RequestErrorEvent,
    ServerLogEvent,
    is_error_response,
)
from .snapshot import normalize_request, normalize_response

_log = logging.getLogger("http_error_logger")


async def maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class ErrorLogger:
    """Turns failed requests into sink calls"""

    def __init__(self, config: Optional[ErrorLoggerConfig] = None):
        self.config = config or ErrorLoggerConfig()
        self.sink = self.config.resolve_sink()

        # Read-only after construction
        self.request_filter = self.config.request_filter
        self.response_filter = self.config.response_filter
        self.classifier = self.config.classifier
        self.request_classifier = self.config.request_classifier

    def _dispatch(self, formatted: FormattedRecord) -> Any:
        return self.sink.error(formatted.record.to_dict(), formatted.message)

    def format_response_error(
        self, request: RawRequest, response: Any
    ) -> Optional[FormattedRecord]:
        """Classify and format an error response, None when nothing is logged"""
        if not is_error_response(response):
            return None

        if not self.classifier.test(response):
            _log.debug("Error response not loggable: %r", response)
            return None

        return format_record(
            normalize_request(request),
            response,
            self.request_filter,
            ERROR_SUFFIX,
            response=normalize_response(response),
            response_filter=self.response_filter,
        )

    def format_request_error(
        self, request: RawRequest, event: RequestErrorEvent
    ) -> Optional[FormattedRecord]:
        """Classify and format an out-of-band request error"""
        if self.config.deduplicate and event.responded:
            _log.debug("Request error already logged with its response: %r", event.error)
            return None

        if not self.request_classifier.test(event.error):
            _log.debug("Request error not loggable: %r", event.error)
            return None

        return format_record(
            normalize_request(request),
            event.error,
            self.request_filter,
            REQUEST_ERROR_SUFFIX,
        )

    def format_server_log(self, event: ServerLogEvent) -> Optional[FormattedRecord]:
        if not self.config.log_server_errors or "error" not in event.tags:
            return None
        return format_server_event(event)

    # Synchronous handlers return whatever the sink returns

    def handle_response(self, request: RawRequest, response: Any) -> Any:
        formatted = self.format_response_error(request, response)
        if formatted is None:
            return None
        return self._dispatch(formatted)

    def handle_request_error(self, request: RawRequest, event: RequestErrorEvent) -> Any:
        formatted = self.format_request_error(request, event)
        if formatted is None:
            return None
        return self._dispatch(formatted)

    def handle_server_log(self, event: ServerLogEvent) -> Any:
        formatted = self.format_server_log(event)
        if formatted is None:
            return None
        return self._dispatch(formatted)

    # Async handlers await asynchronous sinks

    async def ahandle_response(self, request: RawRequest, response: Any) -> Any:
        return await maybe_await(self.handle_response(request, response))

    async def ahandle_request_error(
        self, request: RawRequest, event: RequestErrorEvent
    ) -> Any:
        return await maybe_await(self.handle_request_error(request, event))

    async def ahandle_server_log(self, event: ServerLogEvent) -> Any:
        return await maybe_await(self.handle_server_log(event))

    def register(self, server: HostServer) -> "ErrorLogger":
        """Subscribe to the extension points of ``server``"""
        if getattr(server, "is_async", False):
            server.on_response_finalize(self.ahandle_response)
            server.on_request_error(self.ahandle_request_error)
        else:
            server.on_response_finalize(self.handle_response)
            server.on_request_error(self.handle_request_error)

        on_server_log = getattr(server, "on_server_log", None)
        if self.config.log_server_errors and on_server_log is not None:
            # Logging hooks are synchronous in every host
            on_server_log(self.handle_server_log)
        return self

    def __repr__(self) -> str:
        return f"ErrorLogger(sink={self.sink!r})"
