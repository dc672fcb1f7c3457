"""
Plain text formatter rendering error records
"""

import json
import logging
from typing import Optional

from ..config import LoggerConfig, get_default_config
from ..serializers import SerializationConfig, serialize_for_logging
from .json_formatter import utc_timestamp


class PlainTextFormatter(logging.Formatter):
    """Plain text formatter: the summary line followed by key=value context"""

    def __init__(
        self,
        config: Optional[LoggerConfig] = None,
        serialization_config: Optional[SerializationConfig] = None,
    ):
        super().__init__()
        self.config = config or get_default_config()
        self.serialization_config = serialization_config or SerializationConfig(
            include_traceback=False
        )

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        if self.config.include_timestamp:
            parts.append(f"[{utc_timestamp()}]")

        parts.extend([record.levelname, record.name, record.getMessage()])

        context_items = []
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                serialized = serialize_for_logging(value, self.serialization_config)
                if isinstance(serialized, (dict, list)):
                    value_str = json.dumps(serialized, separators=(",", ":"))
                    # Truncate very long values for readability
                    if len(value_str) > 200:
                        value_str = value_str[:197] + "..."
                else:
                    value_str = str(serialized)
                context_items.append(f"{key[4:]}={value_str}")

        if context_items:
            parts.append(f"({', '.join(context_items)})")

        return " ".join(parts)
