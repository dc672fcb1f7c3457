"""
JSON serialization for error records
"""

import dataclasses
import json
import traceback
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional


@dataclass
class SerializationConfig:
    """Configuration for error record serialization"""

    include_traceback: bool = True
    max_collection_size: int = 1000
    truncate_strings: Optional[int] = None
    max_repr_length: int = 200


def _serialize_exception(exc: BaseException, config: SerializationConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(status, int):
        data["status_code"] = status

    if config.include_traceback and exc.__traceback__ is not None:
        data["traceback"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return data


class ErrorLogJSONEncoder(json.JSONEncoder):
    """JSON encoder that understands exceptions, dataclasses and datetimes"""

    def __init__(self, *args, config: Optional[SerializationConfig] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config or SerializationConfig()

    def _safe_repr(self, obj: Any) -> Dict[str, str]:
        """Create safe representation for unserializable objects"""
        try:
            obj_repr = repr(obj)[: self.config.max_repr_length]
        except Exception as e:
            obj_repr = f"<repr failed: {str(e)[:50]}>"

        return {"__unserializable__": type(obj).__name__, "__repr__": obj_repr}

    def default(self, obj: Any) -> Any:
        if isinstance(obj, BaseException):
            return _serialize_exception(obj, self.config)

        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {
                f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)
            }

        if isinstance(obj, (datetime, date)):
            return obj.isoformat()

        if isinstance(obj, (set, frozenset)):
            return list(obj)[: self.config.max_collection_size]

        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")

        try:
            return super().default(obj)
        except TypeError:
            return self._safe_repr(obj)


def serialize_for_logging(value: Any, config: Optional[SerializationConfig] = None) -> Any:
    """Round-trip ``value`` through the encoder to get plain JSON types"""
    config = config or SerializationConfig()
    value = _truncate(value, config)
    return json.loads(dumps(value, config))


def _truncate(value: Any, config: SerializationConfig) -> Any:
    if isinstance(value, str) and config.truncate_strings:
        if len(value) > config.truncate_strings:
            return value[: config.truncate_strings] + "..."
    if isinstance(value, list) and len(value) > config.max_collection_size:
        truncated = value[: config.max_collection_size]
        truncated.append(f"... ({len(value) - config.max_collection_size} more items)")
        return truncated
    return value


def dumps(value: Any, config: Optional[SerializationConfig] = None, **kwargs) -> str:
    kwargs.setdefault("separators", (",", ":"))
    return json.dumps(value, cls=ErrorLogJSONEncoder, config=config, **kwargs)
