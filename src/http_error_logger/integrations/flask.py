"""
Flask integration for error logging
"""

import time
from typing import Any, Iterable, Optional

try:
    from flask import Flask, g, got_request_exception, request

    FLASK_AVAILABLE = True
except ImportError:
    FLASK_AVAILABLE = False
    # Define dummy types for type checking
    Flask = Any
    g = None
    got_request_exception = None
    request = None

from ..config import ErrorLoggerConfig
from ..host import (
    CallbackHost,
    ErrorResponse,
    RawRequest,
    RequestErrorEvent,
    collect_headers,
)
from ..interceptor import ErrorLogger


class FlaskErrorLogging(CallbackHost):
    """
    Flask extension reporting failed requests

    Unhandled exceptions are reported as request errors when Flask signals
    them; every response with an error status is reported as an error
    response, carrying the unhandled exception when there was one.
    """

    is_async = False

    def __init__(
        self,
        app: Optional[Flask] = None,
        config: Optional[ErrorLoggerConfig] = None,
        server_log_channels: Optional[Iterable[str]] = None,
    ):
        if not FLASK_AVAILABLE:
            raise ImportError("Flask is not installed. Install it with: pip install flask")

        self.config = config or ErrorLoggerConfig()
        if server_log_channels is None:
            server_log_channels = self.config.server_log_channels
        super().__init__(server_log_channels)

        self.error_logger = ErrorLogger(self.config).register(self)

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize Flask app with error logging"""
        app.before_request(self._before_request)
        app.after_request(self._after_request)
        got_request_exception.connect(self._on_exception, app, weak=False)
        app.extensions["http_error_logger"] = self

    def _raw_request(self) -> RawRequest:
        raw = g.get("_http_error_raw_request")
        if raw is None:
            path = request.path
            if request.query_string:
                path = f"{path}?{request.query_string.decode('latin-1')}"

            raw = RawRequest(
                method=request.method,
                path=path,
                headers=collect_headers(request.headers.items()),
                received=time.time(),
                host=request.host,
            )
            g._http_error_raw_request = raw
        return raw

    def _before_request(self) -> None:
        self._raw_request()

    def _on_exception(self, sender: Flask, exception: BaseException, **extra: Any) -> None:
        g._http_error_exception = exception
        self.emit_request_error(
            self._raw_request(), RequestErrorEvent(error=exception, responded=True)
        )

    def _after_request(self, response):
        raw = self._raw_request()

        if response.status_code >= 400:
            self.emit_response(
                raw,
                ErrorResponse(
                    status_code=response.status_code,
                    error=g.get("_http_error_exception"),
                    headers=collect_headers(response.headers.items()),
                    reason=response.status,
                ),
            )
        else:
            self.emit_response(raw, response)

        return response
