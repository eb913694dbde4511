"""
Logging Configuration

Plain-text logging for development and JSON-formatted logging for log
aggregation, selected by the `log_format` setting.
"""

import json
import logging
from datetime import datetime, timezone

from content_model.config import Settings, settings as default_settings

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Extra attributes copied into JSON log lines when present on the record
EXTRA_KEYS = ("list", "path", "type_tag", "error_code", "status_code", "duration_ms")


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a format suitable for log aggregation systems
    like ELK Stack, Loki, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields from record
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(settings: Settings | None = None, logger_name: str = "content_model") -> logging.Logger:
    """
    Attach a single handler to the package logger.

    Calling this more than once replaces the previous handler rather than
    stacking duplicates.
    """
    settings = settings or default_settings
    logger = logging.getLogger(logger_name)
    logger.setLevel(settings.log_level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_content_model_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._content_model_handler = True
    if settings.log_format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
