"""
Framework independent snapshots of the request (and response) that failed
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

Timestamp = Union[int, float, datetime]


def iso_timestamp(received: Timestamp) -> str:
    """
    Convert a received instant to ISO-8601 in UTC with millisecond precision

    Accepts epoch seconds or a datetime. Naive datetimes are taken as UTC.
    """
    if isinstance(received, datetime):
        moment = received
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        moment = moment.astimezone(timezone.utc)
    else:
        moment = datetime.fromtimestamp(float(received), tz=timezone.utc)

    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RequestSnapshot:
    """Immutable view of the triggering request"""

    method: str
    path: str
    host: str
    headers: Dict[str, str] = field(default_factory=dict)
    timestamp: str = ""

    def with_headers(self, headers: Mapping[str, str]) -> "RequestSnapshot":
        return replace(self, headers=dict(headers))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResponseSnapshot:
    """Status and headers of the error response, when there is one"""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)

    def with_headers(self, headers: Mapping[str, str]) -> "ResponseSnapshot":
        return replace(self, headers=dict(headers))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _host_header(headers: Dict[str, str]) -> str:
    for name, value in headers.items():
        if name.lower() == "host":
            return value
    return ""


def normalize_request(raw: Any) -> RequestSnapshot:
    """
    Build a RequestSnapshot from a raw request

    Only ``method``, ``path``, ``host``, ``headers`` and ``received`` are read
    from ``raw``; the headers are copied so the raw request is left untouched.
    """
    headers = dict(getattr(raw, "headers", None) or {})
    host = getattr(raw, "host", None) or _host_header(headers)

    return RequestSnapshot(
        method=str(raw.method).upper(),
        path=raw.path,
        host=host,
        headers=headers,
        timestamp=iso_timestamp(raw.received),
    )


def normalize_response(response: Any) -> Optional[ResponseSnapshot]:
    """Build a ResponseSnapshot if ``response`` carries a status code"""
    status_code = getattr(response, "status_code", None)
    if status_code is None:
        return None

    return ResponseSnapshot(
        status_code=int(status_code),
        headers=dict(getattr(response, "headers", None) or {}),
    )
