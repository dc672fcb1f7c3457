"""
aiohttp integration for error logging

Handler exceptions are reported the way the server will answer them:

- ``HTTPException`` with an error status: an error response (``ERROR``)
- any other exception: a request error (``REQUEST ERROR``) followed by a
  500 error response (``ERROR``)

Errors logged by the ``aiohttp.server`` logger are forwarded as server log
events, except the server's own report of an exception the middleware has
already logged with its request.
"""

import time
from typing import Any, Awaitable, Callable, Iterable, Optional

# aiohttp imports with availability checking
try:
    from aiohttp import web
    from aiohttp.web import Application, Request, StreamResponse, middleware
    from aiohttp.web_exceptions import HTTPException

    HAS_AIOHTTP = True
except ImportError:
    web = None
    Application = None
    Request = None
    StreamResponse = None
    middleware = lambda x: x
    HTTPException = Exception
    HAS_AIOHTTP = False

from ..config import ErrorLoggerConfig
from ..host import (
    CallbackHost,
    ErrorResponse,
    RawRequest,
    RequestErrorEvent,
    collect_headers,
)
from ..interceptor import ErrorLogger

# Older aiohttp releases only take plain string request keys
if HAS_AIOHTTP and hasattr(web, "RequestKey"):
    _RAW_REQUEST_KEY: Any = web.RequestKey("http_error_logging.raw_request", RawRequest)
else:
    _RAW_REQUEST_KEY = "http_error_logging.raw_request"


def _raw_headers_items(request: Request):
    return [
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in request.raw_headers
    ]


class AioHTTPErrorLogging(CallbackHost):
    """HostServer implementation backed by an aiohttp middleware"""

    is_async = True
    default_server_log_channels = ("aiohttp.server",)

    def __init__(self, server_log_channels: Optional[Iterable[str]] = None):
        if not HAS_AIOHTTP:
            raise ImportError(
                "aiohttp is required for aiohttp integration. "
                "Install with: pip install aiohttp"
            )
        super().__init__(server_log_channels)

    def raw_request(self, request: Request) -> RawRequest:
        raw = request.get(_RAW_REQUEST_KEY)
        if raw is None:
            raw = RawRequest(
                method=request.method,
                path=request.raw_path,
                headers=collect_headers(_raw_headers_items(request)),
                received=time.time(),
                host=request.headers.get("Host"),
            )
            request[_RAW_REQUEST_KEY] = raw
        return raw

    async def report_request_error(self, request: Request, error: Any) -> None:
        """Report an error raised outside of a handler (e.g. in a signal)"""
        await self.aemit_request_error(
            self.raw_request(request), RequestErrorEvent(error=error)
        )

    @property
    def middleware(self) -> Callable:
        @middleware
        async def error_logging_middleware(
            request: Request, handler: Callable[[Request], Awaitable[StreamResponse]]
        ) -> StreamResponse:
            raw = self.raw_request(request)

            try:
                response = await handler(request)
            except HTTPException as http_exc:
                if http_exc.status >= 400:
                    await self.aemit_response(
                        raw,
                        ErrorResponse(
                            status_code=http_exc.status,
                            error=http_exc,
                            headers=collect_headers(http_exc.headers.items()),
                            reason=http_exc.reason,
                        ),
                    )
                else:
                    await self.aemit_response(raw, http_exc)
                raise
            except Exception as exc:
                await self.aemit_request_error(
                    raw, RequestErrorEvent(error=exc, responded=True)
                )
                await self.aemit_response(
                    raw,
                    ErrorResponse(
                        status_code=500, error=exc, reason="Internal Server Error"
                    ),
                )
                raise

            await self.aemit_response(raw, response)
            return response

        return error_logging_middleware


def setup_aiohttp_error_logging(
    app: Application,
    config: Optional[ErrorLoggerConfig] = None,
    server_log_channels: Optional[Iterable[str]] = None,
) -> AioHTTPErrorLogging:
    """
    Setup aiohttp application with error logging

    Args:
        app: aiohttp application
        config: Error logger configuration
        server_log_channels: Loggers forwarded as server log events
            (defaults to ``aiohttp.server``)

    Returns:
        The host adapter, with the registered ErrorLogger as ``error_logger``

    Example:
        ```python
        from aiohttp import web
        from http_error_logger.integrations.aiohttp import setup_aiohttp_error_logging

        app = web.Application()
        setup_aiohttp_error_logging(app, ErrorLoggerConfig(logger=my_logger))
        ```
    """
    config = config or ErrorLoggerConfig()
    if server_log_channels is None:
        server_log_channels = config.server_log_channels

    host = AioHTTPErrorLogging(server_log_channels)
    host.error_logger = ErrorLogger(config).register(host)
    app.middlewares.append(host.middleware)

    async def _detach(app: Application) -> None:
        host.close()
        await host.drain()

    app.on_cleanup.append(_detach)
    return host
