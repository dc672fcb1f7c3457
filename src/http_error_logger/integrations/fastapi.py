"""
FastAPI / Starlette integration for error logging
"""

import time
from typing import Any, Callable, Iterable, Optional

try:
    from fastapi import FastAPI, Request, Response
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.types import ASGIApp

    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False
    # Define dummy types for type checking
    FastAPI = Any
    Request = Any
    Response = Any
    BaseHTTPMiddleware = object
    ASGIApp = Any

from ..config import ErrorLoggerConfig
from ..host import (
    CallbackHost,
    ErrorResponse,
    RawRequest,
    RequestErrorEvent,
    collect_headers,
)
from ..interceptor import ErrorLogger


class FastAPIErrorLogging(CallbackHost):
    """
    HostServer implementation fed by ErrorLoggingMiddleware

    ``uvicorn.error`` records are forwarded as server log events, except
    uvicorn's report of an exception the middleware already logged.
    """

    is_async = True
    default_server_log_channels = ("uvicorn.error",)


def _raw_request(request: Request, received: float) -> RawRequest:
    scope = request.scope
    path = scope.get("raw_path") or scope["path"].encode("utf-8")
    query = scope.get("query_string") or b""
    if query:
        path = path + b"?" + query

    return RawRequest(
        method=request.method,
        path=path.decode("latin-1"),
        headers=collect_headers(
            (name.decode("latin-1"), value.decode("latin-1"))
            for name, value in scope.get("headers", [])
        ),
        received=received,
        host=request.headers.get("host"),
    )


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware reporting failed requests

    Responses with an error status are reported as error responses.
    Exceptions escaping the application are reported as a request error
    followed by a 500 error response, then re-raised.
    """

    def __init__(self, app: ASGIApp, host: FastAPIErrorLogging):
        super().__init__(app)
        self.host = host

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        raw = _raw_request(request, time.time())

        try:
            response = await call_next(request)
        except Exception as exc:
            await self.host.aemit_request_error(
                raw, RequestErrorEvent(error=exc, responded=True)
            )
            await self.host.aemit_response(
                raw,
                ErrorResponse(status_code=500, error=exc, reason="Internal Server Error"),
            )
            raise

        if response.status_code >= 400:
            await self.host.aemit_response(
                raw,
                ErrorResponse(
                    status_code=response.status_code,
                    headers=collect_headers(response.headers.items()),
                ),
            )
        else:
            await self.host.aemit_response(raw, response)

        return response


def add_error_logging(
    app: FastAPI,
    config: Optional[ErrorLoggerConfig] = None,
    server_log_channels: Optional[Iterable[str]] = None,
) -> FastAPIErrorLogging:
    """
    Add error logging middleware to a FastAPI (or Starlette) app

    Args:
        app: FastAPI application instance
        config: Optional error logger configuration
        server_log_channels: Loggers forwarded as server log events
            (defaults to ``uvicorn.error``)

    Returns:
        The host adapter, with the registered ErrorLogger as ``error_logger``
    """
    if not FASTAPI_AVAILABLE:
        raise ImportError(
            "FastAPI is not installed. Install it with: pip install fastapi"
        )

    config = config or ErrorLoggerConfig()
    if server_log_channels is None:
        server_log_channels = config.server_log_channels

    host = FastAPIErrorLogging(server_log_channels)
    host.error_logger = ErrorLogger(config).register(host)
    app.add_middleware(ErrorLoggingMiddleware, host=host)
    return host
