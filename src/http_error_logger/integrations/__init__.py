"""
Host framework integrations for error logging
"""

__all__ = []

# aiohttp integration
try:
    from .aiohttp import (
        HAS_AIOHTTP,
        AioHTTPErrorLogging,
        setup_aiohttp_error_logging,
    )

    __all__.extend([
        "HAS_AIOHTTP",
        "AioHTTPErrorLogging",
        "setup_aiohttp_error_logging",
    ])
except ImportError:
    HAS_AIOHTTP = False

# FastAPI / Starlette integration
try:
    from .fastapi import (
        FASTAPI_AVAILABLE,
        ErrorLoggingMiddleware,
        FastAPIErrorLogging,
        add_error_logging,
    )

    __all__.extend([
        "FASTAPI_AVAILABLE",
        "ErrorLoggingMiddleware",
        "FastAPIErrorLogging",
        "add_error_logging",
    ])
except ImportError:
    FASTAPI_AVAILABLE = False

# Flask integration
try:
    from .flask import FLASK_AVAILABLE, FlaskErrorLogging

    __all__.extend([
        "FLASK_AVAILABLE",
        "FlaskErrorLogging",
    ])
except ImportError:
    FLASK_AVAILABLE = False
