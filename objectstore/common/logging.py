import json
import logging
import re
from logging.config import dictConfig

from objectstore.common.config import get_settings

_EVENT_RE = re.compile(r"\[event=([\w.-]+)\]")


def setup_logging(level: str | None = None) -> None:
    """Route log records through the JSON console handler.

    ``level`` defaults to the configured ``LOG_LEVEL``.
    """
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "root": {
                "level": (level or get_settings().LOG_LEVEL).upper(),
                "handlers": ["console"],
            },
            "loggers": {
                # botocore logs every request at DEBUG, including signing material
                "botocore": {"level": "WARNING"},
                "boto3": {"level": "WARNING"},
            },
        }
    )


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        match = _EVENT_RE.search(message)
        if match:
            payload["event"] = match.group(1)
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)
