"""
Structured Logging Module
JSON-formatted log records for log aggregation tools
"""

import json
import logging
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    Formats log records as one JSON object per line.

    Extra context can be attached with
    ``logger.info("msg", extra={"extra_fields": {"message_id": "..."}})``.
    Keys that look like secrets are redacted.
    """

    SENSITIVE_FIELDS = {
        'password', 'token', 'api_key', 'secret', 'credential', 'bot_token'
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update({
                k: self._sanitize_value(k, v)
                for k, v in extra_fields.items()
            })

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS):
            return "[REDACTED]"
        return value
