"""
Exception hierarchy for http_error_logger
"""

from typing import Optional


class HTTPErrorLoggerError(Exception):
    """Base class for all http_error_logger errors"""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n{self.details}"
        return self.message


class ConfigurationError(HTTPErrorLoggerError):
    """Invalid error logger configuration"""

    def __init__(self, option: str, reason: str):
        super().__init__(f"Invalid option '{option}'", reason)
        self.option = option
