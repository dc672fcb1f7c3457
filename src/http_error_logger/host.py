"""
Host server abstraction

Framework adapters translate their own request/response/error objects into
the small value types below and dispatch them through a ``HostServer``.
"""

import asyncio
import concurrent.futures
import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Set,
    Tuple,
    Union,
)


@dataclass
class RawRequest:
    """Transport level request as seen by the host server"""

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    received: Union[float, datetime] = field(default_factory=time.time)
    host: Optional[str] = None


@dataclass
class ErrorResponse:
    """Response explicitly marking an HTTP error outcome"""

    status_code: int
    error: Optional[BaseException] = None
    headers: Dict[str, str] = field(default_factory=dict)
    reason: str = ""

    is_boom = True

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


@dataclass
class RequestErrorEvent:
    """Request handling error reported independently of a response"""

    error: Any
    # The same failure is also finalized as an ErrorResponse
    responded: bool = False


@dataclass
class ServerLogEvent:
    """Server level log event not tied to a single request"""

    channel: str
    error: Any
    tags: Tuple[str, ...] = ("error",)


def is_error_response(response: Any) -> bool:
    return bool(getattr(response, "is_boom", False))


def collect_headers(items: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Lower-case header names and join repeated values with ', '"""
    headers: Dict[str, str] = {}
    for name, value in items:
        key = name.lower()
        if key in headers:
            headers[key] = f"{headers[key]}, {value}"
        else:
            headers[key] = value
    return headers


ResponseCallback = Callable[[RawRequest, Any], Any]
RequestErrorCallback = Callable[[RawRequest, RequestErrorEvent], Any]
ServerLogCallback = Callable[[ServerLogEvent], Any]


class HostServer(Protocol):
    """Extension points an HTTP server exposes to the error logger"""

    is_async: bool

    def on_response_finalize(self, callback: ResponseCallback) -> None:
        ...

    def on_request_error(self, callback: RequestErrorCallback) -> None:
        ...

    def on_server_log(self, callback: ServerLogCallback) -> None:
        ...


_REPORTED_ATTR = "_http_error_logger_reported"

_log = logging.getLogger("http_error_logger")


def mark_reported(error: Any) -> None:
    """Flag an exception as already reported together with its request"""
    if isinstance(error, BaseException):
        setattr(error, _REPORTED_ATTR, True)


def was_reported(error: Any) -> bool:
    return bool(getattr(error, _REPORTED_ATTR, False))


class ServerLogBridge(logging.Handler):
    """
    Turns ERROR records of host server loggers into ServerLogEvents

    Only records at ERROR level or above are forwarded. The error carried by
    the event is the record's exception when present, else its message.
    Exceptions already reported with their request (the host server's own
    "Error handling request" lines) are skipped.
    """

    def __init__(self, callback: ServerLogCallback, level: int = logging.ERROR):
        super().__init__(level)
        self.callback = callback
        self._attached: List[logging.Logger] = []

    def emit(self, record: logging.LogRecord) -> None:
        error: Any = record.getMessage()
        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            if was_reported(error):
                return

        self.callback(ServerLogEvent(channel=record.name, error=error, tags=("error",)))

    def attach(self, logger_names: Iterable[str]) -> "ServerLogBridge":
        for name in logger_names:
            logger = logging.getLogger(name)
            if self not in logger.handlers:
                logger.addHandler(self)
                self._attached.append(logger)
        return self

    def detach(self) -> None:
        for logger in self._attached:
            logger.removeHandler(self)
        self._attached.clear()


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CallbackHost:
    """
    Callback registry shared by the framework adapters

    Implements the HostServer registration methods; adapters call the
    ``emit_*`` (sync hosts) or ``aemit_*`` (async hosts) methods.

    Server log callbacks run inside stdlib logging and cannot be awaited
    there. Awaitable results are scheduled on the running loop, or on the
    loop the host was last used from when the log line comes from another
    thread, and kept until done. ``drain()`` waits for them.
    """

    is_async = False
    default_server_log_channels: Tuple[str, ...] = ()

    def __init__(self, server_log_channels: Optional[Iterable[str]] = None):
        self._response_callbacks: List[ResponseCallback] = []
        self._request_error_callbacks: List[RequestErrorCallback] = []
        self._server_log_callbacks: List[ServerLogCallback] = []
        if server_log_channels is None:
            server_log_channels = self.default_server_log_channels
        self.server_log_channels = tuple(server_log_channels)
        self.server_log_bridge = ServerLogBridge(self.emit_server_log)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[Union[asyncio.Future, concurrent.futures.Future]] = set()

    def on_response_finalize(self, callback: ResponseCallback) -> None:
        self._response_callbacks.append(callback)

    def on_request_error(self, callback: RequestErrorCallback) -> None:
        self._request_error_callbacks.append(callback)

    def on_server_log(self, callback: ServerLogCallback) -> None:
        if not self._server_log_callbacks:
            self._loop = _running_loop() or self._loop
            self.server_log_bridge.attach(self.server_log_channels)
        self._server_log_callbacks.append(callback)

    def close(self) -> None:
        """Detach from the host server loggers"""
        self.server_log_bridge.detach()

    async def drain(self) -> None:
        """Wait for scheduled server log deliveries"""
        pending = [
            asyncio.wrap_future(future)
            if isinstance(future, concurrent.futures.Future)
            else future
            for future in list(self._pending)
        ]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def emit_response(self, request: RawRequest, response: Any) -> None:
        if is_error_response(response):
            mark_reported(getattr(response, "error", None))
        for callback in self._response_callbacks:
            callback(request, response)

    def emit_request_error(self, request: RawRequest, event: RequestErrorEvent) -> None:
        mark_reported(event.error)
        for callback in self._request_error_callbacks:
            callback(request, event)

    def emit_server_log(self, event: ServerLogEvent) -> None:
        for callback in self._server_log_callbacks:
            result = callback(event)
            if inspect.isawaitable(result):
                self._schedule(result)

    def _schedule(self, awaitable: Awaitable[Any]) -> None:
        loop = _running_loop()
        if loop is not None:
            future: Any = asyncio.ensure_future(awaitable)
        elif self._loop is not None and self._loop.is_running():
            future = asyncio.run_coroutine_threadsafe(_await(awaitable), self._loop)
        else:
            # No loop to hand off to: deliver before returning
            asyncio.run(_await(awaitable))
            return

        self._pending.add(future)
        future.add_done_callback(self._delivered)

    def _delivered(self, future: Any) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            _log.error(
                "Server log sink failed",
                exc_info=(type(error), error, error.__traceback__),
            )

    async def aemit_response(self, request: RawRequest, response: Any) -> None:
        self._loop = asyncio.get_running_loop()
        if is_error_response(response):
            mark_reported(getattr(response, "error", None))
        for callback in self._response_callbacks:
            result = callback(request, response)
            if inspect.isawaitable(result):
                await result

    async def aemit_request_error(self, request: RawRequest, event: RequestErrorEvent) -> None:
        self._loop = asyncio.get_running_loop()
        mark_reported(event.error)
        for callback in self._request_error_callbacks:
            result = callback(request, event)
            if inspect.isawaitable(result):
                await result
