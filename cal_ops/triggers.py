# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Reminder Triggers - Repeating trigger descriptions handed to the reminder gateway
"""
from typing import Dict, Union

from models import DailyRecurrence, RecurrenceRule, WeeklyRecurrence


class WeeklyTrigger:
    """Fires every week on a weekday at a local time"""

    def __init__(self, weekday: int, hour: int, minute: int, second: int = 0, repeats: bool = True):
        self.weekday = weekday
        self.hour = hour
        self.minute = minute
        self.second = second
        self.repeats = repeats

    def to_dict(self) -> Dict:
        return {
            'type': 'weekly',
            'weekday': self.weekday,
            'hour': self.hour,
            'minute': self.minute,
            'second': self.second,
            'repeats': self.repeats,
        }

    def __eq__(self, other):
        return isinstance(other, WeeklyTrigger) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(sorted(self.to_dict().items())))

    def __repr__(self):
        return f"WeeklyTrigger({self.to_dict()})"


class DailyTrigger:
    """Fires every day at a local time"""

    def __init__(self, hour: int, minute: int, second: int = 0, repeats: bool = True):
        self.hour = hour
        self.minute = minute
        self.second = second
        self.repeats = repeats

    def to_dict(self) -> Dict:
        return {
            'type': 'daily',
            'hour': self.hour,
            'minute': self.minute,
            'second': self.second,
            'repeats': self.repeats,
        }

    def __eq__(self, other):
        return isinstance(other, DailyTrigger) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(sorted(self.to_dict().items())))

    def __repr__(self):
        return f"DailyTrigger({self.to_dict()})"


Trigger = Union[WeeklyTrigger, DailyTrigger]


def build_trigger(rule: RecurrenceRule) -> Trigger:
    """Build the repeating trigger for a rule"""
    kind = rule.kind
    if isinstance(kind, WeeklyRecurrence):
        return WeeklyTrigger(kind.weekday.value, kind.hour, kind.minute, kind.second)
    elif isinstance(kind, DailyRecurrence):
        return DailyTrigger(kind.hour, kind.minute, kind.second)
    raise TypeError(f"Cannot build a trigger for recurrence kind {kind!r}")


def trigger_from_dict(data: Dict) -> Trigger:
    """Rebuild a trigger from its wire form"""
    trigger_type = data.get('type')
    if trigger_type == 'weekly':
        return WeeklyTrigger(data['weekday'], data['hour'], data['minute'],
                             data.get('second', 0), data.get('repeats', True))
    elif trigger_type == 'daily':
        return DailyTrigger(data['hour'], data['minute'],
                            data.get('second', 0), data.get('repeats', True))
    raise ValueError(f"Unknown trigger type: {trigger_type!r}")


def reminder_body(rule: RecurrenceRule) -> str:
    """Notification body, e.g. 'Sunday Mass at 09:00'"""
    hour, minute, second = rule.kind.time_components()
    time_text = f"{hour:02d}:{minute:02d}"
    if second:
        time_text += f":{second:02d}"
    return f"{rule.display_title()} at {time_text}"
