"""
Tests for aiohttp integration
"""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

# Skip all tests if aiohttp is not installed
try:
    from aiohttp import web
    from aiohttp.test_utils import TestClient, TestServer

    HAS_AIOHTTP = True
except ImportError:
    web = None
    TestClient = None
    TestServer = None
    HAS_AIOHTTP = False

from http_error_logger.config import ErrorLoggerConfig
from http_error_logger.host import ErrorResponse

if HAS_AIOHTTP:
    from http_error_logger.integrations.aiohttp import (
        AioHTTPErrorLogging,
        setup_aiohttp_error_logging,
    )

HEADERS = {
    "Host": "example.com",
    "X-Foo": "bar",
    "Accept": "text/plain",
    "Accept-Language": "es-ES",
}


def create_app(logger=None, server_log_channels=(), **options):
    """Application with a failing, a rejecting and a healthy route"""
    app = web.Application()
    logger = logger or Mock()
    config = ErrorLoggerConfig(logger=logger, **options)
    host = setup_aiohttp_error_logging(app, config, server_log_channels=server_log_channels)

    async def fail(request):
        raise ValueError("Server error")

    async def reject(request):
        raise web.HTTPNotFound(reason="No such thing")

    async def ok(request):
        return web.json_response({"status": "ok"})

    app.router.add_get("/path", fail)
    app.router.add_get("/missing", reject)
    app.router.add_get("/ok", ok)
    return app, logger, host


def messages(logger):
    return [call[0][1] for call in logger.error.call_args_list]


@pytest.mark.skipif(not HAS_AIOHTTP, reason="aiohttp not installed")
@pytest.mark.asyncio
class TestAioHTTPErrorLogging:
    """Test the aiohttp middleware against a running test server"""

    async def test_uncaught_exception_logs_both_triggers(self):
        app, logger, _ = create_app()

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/path", headers=HEADERS)
            assert resp.status == 500

        assert messages(logger) == [
            "GET example.com/path REQUEST ERROR",
            "GET example.com/path ERROR",
        ]

        request_error, response_error = [c[0][0] for c in logger.error.call_args_list]
        assert isinstance(request_error["error"], ValueError)
        assert isinstance(response_error["error"], ErrorResponse)
        assert response_error["error"].error is request_error["error"]
        assert response_error["request"]["timestamp"] == request_error["request"]["timestamp"]

    async def test_request_snapshot(self):
        app, logger, _ = create_app()

        async with TestClient(TestServer(app)) as client:
            await client.get("/path?page=2", headers=HEADERS)

        record = logger.error.call_args[0][0]
        assert record["request"]["method"] == "GET"
        assert record["request"]["path"] == "/path?page=2"
        assert record["request"]["host"] == "example.com"
        assert record["request"]["headers"]["x-foo"] == "bar"
        assert record["request"]["timestamp"].endswith("Z")

    async def test_whitelisted_headers(self):
        app, logger, _ = create_app(
            whitelist_request_headers=["host", "accept", "accept-language"],
            whitelist_response_headers=["content-type", "content-language"],
        )

        async with TestClient(TestServer(app)) as client:
            await client.get("/path", headers=HEADERS)

        record = logger.error.call_args[0][0]
        assert record["request"]["headers"] == {
            "host": "example.com",
            "accept": "text/plain",
            "accept-language": "es-ES",
        }

    async def test_blacklisted_headers(self):
        app, logger, _ = create_app(
            blacklist_request_headers=["accept", "accept-language"],
            blacklist_response_headers=["content-type", "content-language"],
        )

        async with TestClient(TestServer(app)) as client:
            await client.get("/path", headers=HEADERS)

        headers = logger.error.call_args[0][0]["request"]["headers"]
        assert headers["x-foo"] == "bar"
        assert headers["host"] == "example.com"
        assert "accept" not in headers
        assert "accept-language" not in headers

    async def test_http_exception_logs_error_response(self):
        app, logger, _ = create_app()

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/missing", headers=HEADERS)
            assert resp.status == 404

        assert messages(logger) == ["GET example.com/missing ERROR"]
        record = logger.error.call_args[0][0]
        assert record["error"].status_code == 404
        assert record["response"]["status_code"] == 404

    async def test_successful_request_is_not_logged(self):
        app, logger, _ = create_app()

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/ok", headers=HEADERS)
            assert resp.status == 200

        logger.error.assert_not_called()

    async def test_not_loggable_errors(self):
        app, logger, _ = create_app(
            is_loggable_error=lambda error: getattr(error, "status_code", 500) >= 500
        )

        async with TestClient(TestServer(app)) as client:
            await client.get("/missing", headers=HEADERS)

        logger.error.assert_not_called()

    async def test_deduplicate(self):
        app, logger, _ = create_app(deduplicate=True)

        async with TestClient(TestServer(app)) as client:
            await client.get("/path", headers=HEADERS)

        assert messages(logger) == ["GET example.com/path ERROR"]

    async def test_async_logger_is_awaited(self):
        logger = Mock()
        logger.error = AsyncMock()
        app, _, _ = create_app(logger=logger)

        async with TestClient(TestServer(app)) as client:
            await client.get("/path", headers=HEADERS)

        assert logger.error.await_count == 2

    async def test_report_request_error(self):
        app, logger, host = create_app()
        error = RuntimeError("signal failed")

        async def handler(request):
            await host.report_request_error(request, error)
            return web.Response(text="OK")

        app.router.add_get("/signal", handler)

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/signal", headers=HEADERS)
            assert resp.status == 200

        logger.error.assert_called_once()
        record, message = logger.error.call_args[0]
        assert message == "GET example.com/signal REQUEST ERROR"
        assert record["error"] is error

    async def test_default_server_channel_does_not_repeat_handler_errors(self):
        app, logger, host = create_app(server_log_channels=None)
        assert host.server_log_channels == ("aiohttp.server",)

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/path", headers=HEADERS)
            assert resp.status == 500
            logging.getLogger("aiohttp.server").error("Unclosed connection")

        assert messages(logger) == [
            "GET example.com/path REQUEST ERROR",
            "GET example.com/path ERROR",
            "Server error!",
        ]
        assert logger.error.call_args[0][0]["error"] == "Unclosed connection"

    async def test_server_log_events(self):
        app, logger, host = create_app(server_log_channels=["tests.aiohttp.server"])
        error = RuntimeError("accept failed")

        try:
            try:
                raise error
            except RuntimeError:
                logging.getLogger("tests.aiohttp.server").exception("Error handling request")
        finally:
            host.close()

        logger.error.assert_called_once_with(
            {"log_channel": "tests.aiohttp.server", "log_tags": ["error"], "error": error},
            "Server error!",
        )


@pytest.mark.skipif(not HAS_AIOHTTP, reason="aiohttp not installed")
class TestAioHTTPErrorLoggingHost:
    def test_default_server_log_channels(self):
        host = AioHTTPErrorLogging()

        assert host.is_async is True
        assert host.server_log_channels == ("aiohttp.server",)

    def test_close_detaches_bridge(self):
        host = AioHTTPErrorLogging(["tests.aiohttp.detach"])
        host.on_server_log(Mock())

        assert host.server_log_bridge in logging.getLogger("tests.aiohttp.detach").handlers

        host.close()

        assert host.server_log_bridge not in logging.getLogger("tests.aiohttp.detach").handlers

    def test_raw_request_stored_under_typed_key(self):
        from http_error_logger.integrations.aiohttp import _RAW_REQUEST_KEY

        if not hasattr(web, "RequestKey"):
            pytest.skip("aiohttp without typed request keys")

        assert isinstance(_RAW_REQUEST_KEY, web.RequestKey)
