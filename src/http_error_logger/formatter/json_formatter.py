"""
JSON formatter rendering error records
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config import LoggerConfig, get_default_config
from ..serializers import SerializationConfig, dumps


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class StructuredFormatter(logging.Formatter):
    """JSON formatter for error records"""

    def __init__(
        self,
        config: Optional[LoggerConfig] = None,
        serialization_config: Optional[SerializationConfig] = None,
    ):
        super().__init__()
        self.config = config or get_default_config()
        self.serialization_config = serialization_config or SerializationConfig()

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.config.include_timestamp:
            log_entry["timestamp"] = utc_timestamp()

        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_entry[key[4:]] = value  # Remove ctx_ prefix

        if record.exc_info and "error" not in log_entry:
            log_entry["error"] = record.exc_info[1]

        return dumps(log_entry, self.serialization_config)
