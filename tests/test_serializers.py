import json
from dataclasses import dataclass
from datetime import datetime, timezone

from http_error_logger.serializers import (
    ErrorLogJSONEncoder,
    SerializationConfig,
    dumps,
    serialize_for_logging,
)


@dataclass
class Payload:
    name: str
    when: datetime


class TestErrorLogJSONEncoder:
    def test_raised_exception_includes_traceback(self):
        try:
            raise ValueError("boom")
        except ValueError as exc:
            data = json.loads(dumps({"error": exc}))

        assert data["error"]["type"] == "ValueError"
        assert data["error"]["message"] == "boom"
        assert "Traceback" in data["error"]["traceback"]

    def test_traceback_can_be_disabled(self):
        try:
            raise ValueError("boom")
        except ValueError as exc:
            data = json.loads(dumps(exc, SerializationConfig(include_traceback=False)))

        assert "traceback" not in data

    def test_exception_status(self):
        class NotFound(Exception):
            status = 404

        data = json.loads(dumps(NotFound("gone")))

        assert data["status_code"] == 404

    def test_dataclasses_and_datetimes(self):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        data = json.loads(dumps(Payload(name="x", when=when)))

        assert data == {"name": "x", "when": "2024-01-02T03:04:05+00:00"}

    def test_sets_tuples_and_bytes(self):
        data = json.loads(dumps({"tags": ("error",), "names": frozenset(["a"]), "raw": b"abc"}))

        assert data == {"tags": ["error"], "names": ["a"], "raw": "abc"}

    def test_unserializable_fallback(self):
        encoder = ErrorLogJSONEncoder()

        result = encoder.default(object())

        assert result["__unserializable__"] == "object"
        assert result["__repr__"].startswith("<object object")


class TestSerializeForLogging:
    def test_plain_values_round_trip(self):
        assert serialize_for_logging({"a": [1, 2]}) == {"a": [1, 2]}

    def test_string_truncation(self):
        config = SerializationConfig(truncate_strings=5)

        assert serialize_for_logging("abcdefgh", config) == "abcde..."

    def test_list_truncation(self):
        config = SerializationConfig(max_collection_size=2)

        result = serialize_for_logging([1, 2, 3, 4], config)

        assert result == [1, 2, "... (2 more items)"]
