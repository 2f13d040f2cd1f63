# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Schedule Store - Persistence for the parish schedule

A schedule that cannot be decoded is treated as "no schedule": load() logs
the problem and returns None instead of raising.
"""
import json
import logging
import os
import tempfile
from threading import Lock
from typing import Optional

import config
from models import InvalidRuleError, Schedule

logger = logging.getLogger(__name__)

STORE_VERSION = '1.0'


def encode_schedule(schedule: Schedule) -> str:
    data = schedule.to_dict()
    data['storeVersion'] = STORE_VERSION
    return json.dumps(data, indent=2)


def decode_schedule(text: str) -> Optional[Schedule]:
    """Decode a stored schedule, or None if the text is empty or unusable"""
    if not text or not text.strip():
        return None
    try:
        return Schedule.from_dict(json.loads(text))
    except (ValueError, TypeError, KeyError, InvalidRuleError) as e:
        # json.JSONDecodeError and InvalidRuleError are both ValueErrors
        logger.warning(f"Discarding unreadable stored schedule: {e}")
        return None


class ScheduleStore:
    """Abstract base class for schedule persistence"""

    def load(self) -> Optional[Schedule]:
        raise NotImplementedError

    def save(self, schedule: Schedule) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class JsonFileScheduleStore(ScheduleStore):
    """Keeps the schedule as a JSON document on disk"""

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.SCHEDULE_STORE_PATH
        self._lock = Lock()

    def load(self) -> Optional[Schedule]:
        with self._lock:
            if not os.path.exists(self.path):
                logger.info("No stored schedule found - starting empty")
                return None
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    text = f.read()
            except OSError as e:
                logger.warning(f"Failed to read stored schedule: {e}")
                return None

        schedule = decode_schedule(text)
        if schedule is not None:
            logger.info(f"✅ Loaded schedule for '{schedule.owner_name}' with {len(schedule.rules)} rules")
        return schedule

    def save(self, schedule: Schedule) -> None:
        """Write to a temp file and swap it in, so a crash never leaves half a file"""
        text = encode_schedule(schedule)
        directory = os.path.dirname(os.path.abspath(self.path))

        with self._lock:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.schedule-', suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

        logger.info(f"✅ Saved schedule with {len(schedule.rules)} rules")

    def clear(self) -> None:
        with self._lock:
            if os.path.exists(self.path):
                os.remove(self.path)
                logger.info("✅ Cleared stored schedule")


class InMemoryScheduleStore(ScheduleStore):
    """Keeps the encoded schedule in memory; decodes on every load like the file store"""

    def __init__(self, initial: Optional[Schedule] = None):
        self._lock = Lock()
        self._text = encode_schedule(initial) if initial is not None else ''

    def load(self) -> Optional[Schedule]:
        with self._lock:
            text = self._text
        return decode_schedule(text)

    def save(self, schedule: Schedule) -> None:
        text = encode_schedule(schedule)
        with self._lock:
            self._text = text

    def clear(self) -> None:
        with self._lock:
            self._text = ''

    def write_raw(self, text: str) -> None:
        """Store text as-is, bypassing encoding"""
        with self._lock:
            self._text = text
