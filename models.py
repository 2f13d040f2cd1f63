# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Data models for parish schedules: recurrence rules, schedules and occurrences
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union


class InvalidRuleError(ValueError):
    """Raised when a recurrence rule or schedule cannot be constructed"""
    pass


class Weekday(Enum):
    """Weekdays numbered Sunday-first, matching the persisted schedule format"""
    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @property
    def python_weekday(self) -> int:
        """Index used by datetime.weekday() (Monday=0 .. Sunday=6)"""
        return (self.value - 2) % 7

    @classmethod
    def from_python_weekday(cls, index: int) -> 'Weekday':
        return cls((index + 1) % 7 + 1)


def _check_component(name: str, value, upper: int) -> int:
    # bool is an int subclass; True must not pass as hour 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRuleError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= upper:
        raise InvalidRuleError(f"{name} must be between 0 and {upper}, got {value}")
    return value


def _check_weekday(value) -> Weekday:
    if isinstance(value, Weekday):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRuleError(f"weekday must be an integer 1-7, got {value!r}")
    try:
        return Weekday(value)
    except ValueError:
        raise InvalidRuleError(f"weekday must be between 1 and 7, got {value}")


class WeeklyRecurrence:
    """Repeats every week on one weekday at a fixed local time"""

    kind = 'weekly'

    def __init__(self, weekday: Union[Weekday, int], hour: int, minute: int, second: int = 0):
        self.weekday = _check_weekday(weekday)
        self.hour = _check_component('hour', hour, 23)
        self.minute = _check_component('minute', minute, 59)
        self.second = _check_component('second', second, 59)

    def time_components(self) -> Tuple[int, int, int]:
        return self.hour, self.minute, self.second

    def _key(self):
        return self.kind, self.weekday.value, self.hour, self.minute, self.second

    def __eq__(self, other):
        return isinstance(other, WeeklyRecurrence) and self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"WeeklyRecurrence({self.weekday.title}, "
                f"{self.hour:02d}:{self.minute:02d}:{self.second:02d})")


class DailyRecurrence:
    """Repeats every day at a fixed local time"""

    kind = 'daily'

    def __init__(self, hour: int, minute: int, second: int = 0):
        self.hour = _check_component('hour', hour, 23)
        self.minute = _check_component('minute', minute, 59)
        self.second = _check_component('second', second, 59)

    def time_components(self) -> Tuple[int, int, int]:
        return self.hour, self.minute, self.second

    def _key(self):
        return self.kind, self.hour, self.minute, self.second

    def __eq__(self, other):
        return isinstance(other, DailyRecurrence) and self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"DailyRecurrence({self.hour:02d}:{self.minute:02d}:{self.second:02d})"


class RecurrenceRule:
    """
    A repeating point in time: a weekly weekday+time or a daily time-of-day.

    Every field is validated here; a constructed rule is always complete and
    in range. The id is stable across edits so the matching reminder can be
    replaced in place.
    """

    def __init__(self, kind: Union[WeeklyRecurrence, DailyRecurrence],
                 label: Optional[str] = None, rule_id: Optional[str] = None):
        if not isinstance(kind, (WeeklyRecurrence, DailyRecurrence)):
            raise InvalidRuleError(f"Unsupported recurrence kind: {kind!r}")
        if label is not None and not isinstance(label, str):
            raise InvalidRuleError(f"label must be a string, got {label!r}")
        if rule_id is None:
            rule_id = str(uuid.uuid4())
        if not isinstance(rule_id, str) or not rule_id.strip():
            raise InvalidRuleError("rule id must be a non-empty string")

        self.id = rule_id
        self.kind = kind
        self.label = label

    @classmethod
    def weekly(cls, weekday: Union[Weekday, int], hour: int, minute: int, second: int = 0,
               label: Optional[str] = None, rule_id: Optional[str] = None) -> 'RecurrenceRule':
        return cls(WeeklyRecurrence(weekday, hour, minute, second), label=label, rule_id=rule_id)

    @classmethod
    def daily(cls, hour: int, minute: int, second: int = 0,
              label: Optional[str] = None, rule_id: Optional[str] = None) -> 'RecurrenceRule':
        return cls(DailyRecurrence(hour, minute, second), label=label, rule_id=rule_id)

    @property
    def is_weekly(self) -> bool:
        return isinstance(self.kind, WeeklyRecurrence)

    def display_title(self) -> str:
        """Label when set, otherwise a readable fallback such as 'Sunday Service'"""
        if self.label and self.label.strip():
            return self.label
        if isinstance(self.kind, WeeklyRecurrence):
            return f"{self.kind.weekday.title} Service"
        elif isinstance(self.kind, DailyRecurrence):
            return "Daily Service"
        raise TypeError(f"Unknown recurrence kind: {self.kind!r}")

    def with_time(self, hour: int, minute: int, second: int = 0) -> 'RecurrenceRule':
        """Same rule (same id) at a different time of day"""
        if isinstance(self.kind, WeeklyRecurrence):
            kind = WeeklyRecurrence(self.kind.weekday, hour, minute, second)
        elif isinstance(self.kind, DailyRecurrence):
            kind = DailyRecurrence(hour, minute, second)
        else:
            raise TypeError(f"Unknown recurrence kind: {self.kind!r}")
        return RecurrenceRule(kind, label=self.label, rule_id=self.id)

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'kind': self.kind.kind,
            'hour': self.kind.hour,
            'minute': self.kind.minute,
            'second': self.kind.second,
            'label': self.label,
        }
        if isinstance(self.kind, WeeklyRecurrence):
            data['weekday'] = self.kind.weekday.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'RecurrenceRule':
        if not isinstance(data, dict):
            raise InvalidRuleError(f"Rule must be an object, got {type(data).__name__}")

        kind_name = data.get('kind')
        for field in ('id', 'hour', 'minute'):
            if data.get(field) is None:
                raise InvalidRuleError(f"Rule is missing required field '{field}'")
        # Older schedules stored hour/minute only
        second = data.get('second', 0)

        if kind_name == 'weekly':
            if data.get('weekday') is None:
                raise InvalidRuleError("Weekly rule is missing 'weekday'")
            kind = WeeklyRecurrence(data['weekday'], data['hour'], data['minute'], second)
        elif kind_name == 'daily':
            if data.get('weekday') is not None:
                raise InvalidRuleError("Daily rule must not carry a 'weekday'")
            kind = DailyRecurrence(data['hour'], data['minute'], second)
        else:
            raise InvalidRuleError(f"Unknown rule kind: {kind_name!r}")

        return cls(kind, label=data.get('label'), rule_id=data['id'])

    def _key(self):
        return self.id, self.kind, self.label

    def __eq__(self, other):
        return isinstance(other, RecurrenceRule) and self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"RecurrenceRule(id={self.id!r}, kind={self.kind!r}, label={self.label!r})"


class Schedule:
    """
    A parish schedule: the owner's name and an ordered set of rules.

    Schedules are snapshots. Edits go through with_rules(), which returns a
    new Schedule, so a snapshot handed to the synchronizer never changes.
    """

    def __init__(self, owner_name: str = '', rules: Iterable[RecurrenceRule] = ()):
        if not isinstance(owner_name, str):
            raise InvalidRuleError("owner name must be a string")

        rules = tuple(rules)
        seen = set()
        for rule in rules:
            if not isinstance(rule, RecurrenceRule):
                raise InvalidRuleError(f"Schedule rules must be RecurrenceRule, got {rule!r}")
            if rule.id in seen:
                raise InvalidRuleError(f"Duplicate rule id in schedule: {rule.id}")
            seen.add(rule.id)

        self.owner_name = owner_name
        self.rules = rules

    @classmethod
    def empty(cls) -> 'Schedule':
        return cls('', ())

    def is_empty(self) -> bool:
        return not self.rules

    def with_rules(self, rules: Iterable[RecurrenceRule]) -> 'Schedule':
        return Schedule(self.owner_name, rules)

    def rule_by_id(self, rule_id: str) -> Optional[RecurrenceRule]:
        return next((rule for rule in self.rules if rule.id == rule_id), None)

    def weekly_rules(self) -> List[RecurrenceRule]:
        return [rule for rule in self.rules if rule.is_weekly]

    def to_dict(self) -> Dict:
        return {
            'ownerName': self.owner_name,
            'rules': [rule.to_dict() for rule in self.rules],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Schedule':
        if not isinstance(data, dict):
            raise InvalidRuleError(f"Schedule must be an object, got {type(data).__name__}")
        rules = data.get('rules', [])
        if not isinstance(rules, list):
            raise InvalidRuleError("Schedule 'rules' must be a list")
        return cls(data.get('ownerName', ''), [RecurrenceRule.from_dict(item) for item in rules])

    def __eq__(self, other):
        return (isinstance(other, Schedule)
                and self.owner_name == other.owner_name
                and self.rules == other.rules)

    def __hash__(self):
        return hash((self.owner_name, self.rules))

    def __repr__(self):
        return f"Schedule(owner_name={self.owner_name!r}, rules={len(self.rules)})"


class Occurrence:
    """One resolved upcoming instant of a rule. Derived on demand, never stored."""

    def __init__(self, rule_id: str, instant: datetime, title: str):
        self.rule_id = rule_id
        self.instant = instant
        self.title = title

    def to_dict(self) -> Dict:
        return {
            'rule_id': self.rule_id,
            'title': self.title,
            'instant': self.instant.isoformat(),
        }

    def __eq__(self, other):
        return (isinstance(other, Occurrence)
                and self.rule_id == other.rule_id
                and self.instant == other.instant
                and self.title == other.title)

    def __hash__(self):
        return hash((self.rule_id, self.instant, self.title))

    def __repr__(self):
        return f"Occurrence({self.title!r} at {self.instant.isoformat()})"
