"""
Builds the structured record and the summary line handed to the sink
"""

from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional, Tuple

from ..headers import HeaderFilterConfig, filter_headers
from ..host import ServerLogEvent
from ..snapshot import RequestSnapshot, ResponseSnapshot

ERROR_SUFFIX = "ERROR"
REQUEST_ERROR_SUFFIX = "REQUEST ERROR"
SERVER_ERROR_MESSAGE = "Server error!"


@dataclass
class LogRecord:
    """Structured payload for one loggable event"""

    error: Any
    request: Optional[RequestSnapshot] = None
    response: Optional[ResponseSnapshot] = None
    log_channel: Optional[str] = None
    log_tags: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Payload passed to the sink; ``error`` is the original object"""
        if self.request is None:
            return {
                "log_channel": self.log_channel,
                "log_tags": list(self.log_tags or ()),
                "error": self.error,
            }

        payload: Dict[str, Any] = {"request": self.request.to_dict()}
        if self.response is not None:
            payload["response"] = self.response.to_dict()
        payload["error"] = self.error
        return payload


class FormattedRecord(NamedTuple):
    record: LogRecord
    message: str


def stringify_request(snapshot: RequestSnapshot) -> str:
    return f"{snapshot.method} {snapshot.host}{snapshot.path}"


def format_record(
    snapshot: RequestSnapshot,
    error: Any,
    request_filter: Optional[HeaderFilterConfig] = None,
    suffix: str = ERROR_SUFFIX,
    response: Optional[ResponseSnapshot] = None,
    response_filter: Optional[HeaderFilterConfig] = None,
) -> FormattedRecord:
    """
    Combine a request snapshot and an error into a record and a message

    Request and response headers are filtered independently, each with its
    own configuration.
    """
    request = snapshot.with_headers(filter_headers(snapshot.headers, request_filter))

    if response is not None:
        response = response.with_headers(
            filter_headers(response.headers, response_filter)
        )

    record = LogRecord(error=error, request=request, response=response)
    message = f"{stringify_request(snapshot)} {suffix}"
    return FormattedRecord(record, message)


def format_server_event(event: ServerLogEvent) -> FormattedRecord:
    record = LogRecord(
        error=event.error,
        log_channel=event.channel,
        log_tags=tuple(event.tags),
    )
    return FormattedRecord(record, SERVER_ERROR_MESSAGE)
