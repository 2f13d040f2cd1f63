# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Structured Logger - JSON log lines for reminder sync events
"""
import json
import logging
from typing import Any, Dict, Optional

import config
from utils.timezone import get_local_time

SERVICE_NAME = "reminder-sync"


def configure_logging(level: Optional[str] = None):
    """Root logging setup used by the web app and gunicorn workers"""
    handler = logging.StreamHandler()
    if config.STRUCTURED_LOGGING:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO))


class StructuredLogger:
    """Emits sync events as single-line JSON documents"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    def _base_entry(self, event_type: str) -> Dict[str, Any]:
        return {
            "timestamp": get_local_time().isoformat(),
            "timezone": config.TIMEZONE,
            "event_type": event_type,
            "service": SERVICE_NAME,
            "logger": self.name,
        }

    def log_sync_event(self, event_type: str, details: Dict[str, Any]):
        """Log a sync-related event; level follows the event name"""
        log_entry = {**self._base_entry(event_type), **details}
        message = json.dumps(log_entry, default=str)

        lowered = event_type.lower()
        if "error" in lowered or "failed" in lowered:
            self.logger.error(message)
        elif "warning" in lowered:
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_performance(self, operation: str, duration_seconds: float,
                        item_count: Optional[int] = None, success: bool = True):
        log_entry = self._base_entry("performance")
        log_entry.update({
            "operation": operation,
            "duration_seconds": duration_seconds,
            "success": success,
        })
        if item_count is not None:
            log_entry["item_count"] = item_count

        self.logger.info(json.dumps(log_entry, default=str))


class JsonFormatter(logging.Formatter):
    """Formatter that outputs JSON, passing through messages that already are"""

    def format(self, record):
        message = record.getMessage()
        try:
            json.loads(message)
            return message
        except (json.JSONDecodeError, TypeError):
            log_entry = {
                "timestamp": get_local_time().isoformat(),
                "timezone": config.TIMEZONE,
                "level": record.levelname,
                "logger": record.name,
                "message": message,
            }
            if record.exc_info:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)
