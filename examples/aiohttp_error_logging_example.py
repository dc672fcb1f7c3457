#!/usr/bin/env python3
"""
Example logging failed aiohttp requests through a custom logger

Run it, then try:
    curl -H 'Authorization: secret' http://localhost:8080/boom
    curl http://localhost:8080/missing
"""

import json

from aiohttp import web

from http_error_logger import ErrorLoggerConfig, status_at_least
from http_error_logger.integrations.aiohttp import setup_aiohttp_error_logging
from http_error_logger.serializers import dumps


class PrintLogger:
    """Minimal logger with the (record, message) calling convention"""

    def error(self, record, message):
        print(message)
        print(json.dumps(json.loads(dumps(record)), indent=2))


async def boom(request):
    raise RuntimeError("database unavailable")


async def missing(request):
    raise web.HTTPNotFound()


def create_app() -> web.Application:
    app = web.Application()

    config = ErrorLoggerConfig.from_options(
        {
            "logger": PrintLogger(),
            "blacklistRequestHeaders": ["authorization", "cookie"],
            "whitelistResponseHeaders": ["content-type"],
            # 404s are noise, only log server errors
            "isLoggableError": status_at_least(500),
        }
    )
    setup_aiohttp_error_logging(app, config)

    app.router.add_get("/boom", boom)
    app.router.add_get("/missing", missing)
    return app


if __name__ == "__main__":
    web.run_app(create_app(), port=8080)
