from unittest.mock import Mock

import pytest

from http_error_logger.classifier import always_loggable
from http_error_logger.config import (
    ErrorLoggerConfig,
    LoggerConfig,
    get_default_config,
    set_default_config,
)
from http_error_logger.exceptions import ConfigurationError
from http_error_logger.headers import HeaderFilterConfig


def test_logger_config_defaults():
    config = LoggerConfig()
    assert config.log_level == "ERROR"
    assert config.include_timestamp is True
    assert config.formatter_type == "json"
    assert config.output_type == "console"


def test_logger_config_from_env(monkeypatch):
    monkeypatch.setenv("HTTP_ERROR_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("HTTP_ERROR_LOG_TIMESTAMP", "false")
    monkeypatch.setenv("HTTP_ERROR_LOG_FORMATTER", "plain")
    monkeypatch.setenv("HTTP_ERROR_LOG_OUTPUT", "file")
    monkeypatch.setenv("HTTP_ERROR_LOG_FILENAME", "errors.log")

    config = LoggerConfig.from_env()
    assert config.log_level == "WARNING"
    assert config.include_timestamp is False
    assert config.formatter_type == "plain"
    assert config.output_type == "file"
    assert config.filename == "errors.log"


def test_logger_config_unknown_formatter_from_env(monkeypatch):
    monkeypatch.setenv("HTTP_ERROR_LOG_FORMATTER", "xml")

    assert LoggerConfig.from_env().formatter_type == "json"


def test_logger_config_rejects_invalid_values():
    with pytest.raises(ConfigurationError):
        LoggerConfig(formatter_type="xml")
    with pytest.raises(ConfigurationError):
        LoggerConfig(output_type="network")


def test_logger_config_invalid_number_from_env(monkeypatch):
    monkeypatch.setenv("HTTP_ERROR_LOG_MAX_BYTES", "lots")

    with pytest.raises(ConfigurationError):
        LoggerConfig.from_env()


def test_get_default_config():
    config = get_default_config()
    assert isinstance(config, LoggerConfig)


def test_set_default_config():
    custom_config = LoggerConfig(log_level="CRITICAL")
    set_default_config(custom_config)

    try:
        assert get_default_config().log_level == "CRITICAL"
    finally:
        set_default_config(None)


class TestErrorLoggerConfig:
    def test_defaults(self):
        config = ErrorLoggerConfig()

        assert config.logger is None
        assert config.is_loggable_error is always_loggable
        assert config.is_loggable_request_error is None
        assert config.deduplicate is False
        assert config.log_server_errors is True
        assert config.request_filter == HeaderFilterConfig()
        assert config.response_filter == HeaderFilterConfig()

    def test_filters_from_lists(self):
        config = ErrorLoggerConfig(
            whitelist_request_headers=["host"],
            blacklist_request_headers=["cookie"],
            blacklist_response_headers=["set-cookie"],
        )

        assert config.request_filter == HeaderFilterConfig(allow=("host",), deny=("cookie",))
        assert config.response_filter == HeaderFilterConfig(deny=("set-cookie",))

    def test_request_classifier_falls_back_to_error_predicate(self):
        predicate = Mock(return_value=False)
        config = ErrorLoggerConfig(is_loggable_error=predicate)

        assert config.request_classifier.test(ValueError()) is False
        predicate.assert_called_once()

    def test_none_predicate_means_default(self):
        config = ErrorLoggerConfig(is_loggable_error=None)

        assert config.is_loggable_error is always_loggable

    def test_rejects_logger_without_error_method(self):
        with pytest.raises(ConfigurationError, match="logger"):
            ErrorLoggerConfig(logger=object())

    def test_rejects_non_callable_predicate(self):
        with pytest.raises(ConfigurationError):
            ErrorLoggerConfig(is_loggable_error=True)

    def test_resolve_sink_returns_given_logger(self):
        sink = Mock()

        assert ErrorLoggerConfig(logger=sink).resolve_sink() is sink


class TestFromOptions:
    def test_hapi_style_names(self):
        sink = Mock()
        predicate = Mock()

        config = ErrorLoggerConfig.from_options(
            {
                "logger": sink,
                "whitelistRequestHeaders": ["host"],
                "blacklistRequestHeaders": ["cookie"],
                "whitelistResponseHeaders": ["content-type"],
                "blacklistResponseHeaders": ["set-cookie"],
                "isLoggableError": predicate,
            }
        )

        assert config.logger is sink
        assert config.whitelist_request_headers == ["host"]
        assert config.blacklist_request_headers == ["cookie"]
        assert config.whitelist_response_headers == ["content-type"]
        assert config.blacklist_response_headers == ["set-cookie"]
        assert config.is_loggable_error is predicate

    def test_request_error_alias(self):
        predicate = Mock()

        config = ErrorLoggerConfig.from_options(
            {"logger": Mock(), "isLoggableRequestError": predicate}
        )

        assert config.is_loggable_request_error is predicate

    def test_snake_case_names(self):
        config = ErrorLoggerConfig.from_options(
            {"logger": Mock(), "whitelist_request_headers": ["host"]}
        )

        assert config.whitelist_request_headers == ["host"]

    def test_logger_is_required(self):
        with pytest.raises(ConfigurationError, match="logger"):
            ErrorLoggerConfig.from_options({"whitelistRequestHeaders": ["host"]})

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="whitelistHeaders"):
            ErrorLoggerConfig.from_options({"logger": Mock(), "whitelistHeaders": []})

    def test_duplicate_option(self):
        with pytest.raises(ConfigurationError):
            ErrorLoggerConfig.from_options(
                {
                    "logger": Mock(),
                    "isLoggableError": Mock(),
                    "is_loggable_error": Mock(),
                }
            )


class TestFromEnv:
    def test_header_lists(self, monkeypatch):
        monkeypatch.setenv("HTTP_ERROR_LOG_WHITELIST_REQUEST_HEADERS", "host, accept")
        monkeypatch.setenv("HTTP_ERROR_LOG_BLACKLIST_RESPONSE_HEADERS", "set-cookie")
        monkeypatch.setenv("HTTP_ERROR_LOG_DEDUPLICATE", "true")
        monkeypatch.setenv("HTTP_ERROR_LOG_SERVER_ERRORS", "false")

        config = ErrorLoggerConfig.from_env()

        assert config.whitelist_request_headers == ["host", "accept"]
        assert config.blacklist_request_headers is None
        assert config.blacklist_response_headers == ["set-cookie"]
        assert config.deduplicate is True
        assert config.log_server_errors is False

    def test_empty_lists_are_none(self, monkeypatch):
        monkeypatch.setenv("HTTP_ERROR_LOG_WHITELIST_REQUEST_HEADERS", " , ")

        config = ErrorLoggerConfig.from_env()

        assert config.whitelist_request_headers is None
        assert config.request_filter.is_passthrough

    def test_logger_argument(self):
        sink = Mock()

        assert ErrorLoggerConfig.from_env(logger=sink).logger is sink
