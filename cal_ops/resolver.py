# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Occurrence Resolver - Compute the next Mass or prayer hour from recurrence rules

Everything here is a pure function of (rules, enabled, reference instant,
calendar): no I/O and no shared state, so the UI, the widget snapshot and the
background resync can all call it concurrently.
"""
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List, Optional, Union

import pytz

import config
from models import DailyRecurrence, Occurrence, RecurrenceRule, WeeklyRecurrence
from utils.timezone import ensure_aware, get_timezone, localize_first

RulePredicate = Callable[[RecurrenceRule], bool]
Calendar = Union[str, pytz.BaseTzInfo, None]

# One year of candidates; a validated rule always matches well inside this
MAX_WEEKLY_CANDIDATES = 53
MAX_DAILY_CANDIDATES = 367

# Weekly rules win ties against daily rules
KIND_PRECEDENCE = {
    WeeklyRecurrence: 0,
    DailyRecurrence: 1,
}


def _candidate_dates(kind, start: date):
    """Dates on which the rule's wall-clock time may fall, in order"""
    if isinstance(kind, WeeklyRecurrence):
        days_ahead = (kind.weekday.python_weekday - start.weekday()) % 7
        first = start + timedelta(days=days_ahead)
        for week in range(MAX_WEEKLY_CANDIDATES):
            yield first + timedelta(weeks=week)
    elif isinstance(kind, DailyRecurrence):
        for day in range(MAX_DAILY_CANDIDATES):
            yield start + timedelta(days=day)
    else:
        raise TypeError(f"Unknown recurrence kind: {kind!r}")


def next_occurrence_of(rule: RecurrenceRule, after_instant: datetime,
                       calendar: Calendar = None) -> Optional[datetime]:
    """
    Earliest instant strictly after after_instant that matches the rule.

    Args:
        rule: Validated recurrence rule
        after_instant: Timezone-aware reference instant
        calendar: Timezone whose wall clock the rule is expressed in
            (defaults to config.TIMEZONE)

    Returns:
        Aware datetime in the calendar's timezone, or None if nothing matches

    Local times that do not exist (spring-forward gap) are skipped and the
    search moves on to the next candidate date. Local times that happen twice
    (fall-back) resolve to the first of the two instants only.
    """
    ensure_aware(after_instant, 'after_instant')
    tz = get_timezone(calendar)

    start = after_instant.astimezone(tz).date()
    wall_time = time(*rule.kind.time_components())

    for candidate_date in _candidate_dates(rule.kind, start):
        candidate = localize_first(datetime.combine(candidate_date, wall_time), tz)
        if candidate is None:
            continue
        if candidate > after_instant:
            return candidate

    return None


def _sort_key(rule: RecurrenceRule, instant: datetime):
    return instant, KIND_PRECEDENCE[type(rule.kind)], rule.id


def _enabled_rules(rules: Iterable[RecurrenceRule], enabled: Optional[RulePredicate]):
    if enabled is None:
        return list(rules)
    return [rule for rule in rules if enabled(rule)]


def resolve_next(rules: Iterable[RecurrenceRule], enabled: Optional[RulePredicate],
                 after_instant: datetime, calendar: Calendar = None) -> Optional[Occurrence]:
    """
    The single next occurrence across all enabled rules.

    Ties on the instant go to weekly rules before daily rules, then to the
    lower rule id, so the answer never depends on the order rules are given in.
    Returns None when no enabled rule has an upcoming occurrence.
    """
    best = None
    best_key = None

    for rule in _enabled_rules(rules, enabled):
        instant = next_occurrence_of(rule, after_instant, calendar)
        if instant is None:
            continue
        key = _sort_key(rule, instant)
        if best_key is None or key < best_key:
            best, best_key = (rule, instant), key

    if best is None:
        return None

    rule, instant = best
    return Occurrence(rule.id, instant, rule.display_title())


def upcoming_occurrences(rules: Iterable[RecurrenceRule], enabled: Optional[RulePredicate],
                         after_instant: datetime, calendar: Calendar = None,
                         limit: int = 8) -> List[Occurrence]:
    """The next `limit` occurrences across all enabled rules, soonest first"""
    if limit <= 0:
        return []

    pending = []
    for rule in _enabled_rules(rules, enabled):
        instant = next_occurrence_of(rule, after_instant, calendar)
        if instant is not None:
            pending.append((_sort_key(rule, instant), rule))

    results = []
    while pending and len(results) < limit:
        pending.sort(key=lambda item: item[0])
        (instant, _, _), rule = pending.pop(0)
        results.append(Occurrence(rule.id, instant, rule.display_title()))

        following = next_occurrence_of(rule, instant, calendar)
        if following is not None:
            pending.append((_sort_key(rule, following), rule))

    return results


def next_refresh_time(rules: Iterable[RecurrenceRule], enabled: Optional[RulePredicate],
                      now: datetime, calendar: Calendar = None) -> datetime:
    """When a display of the next service goes stale"""
    occurrence = resolve_next(rules, enabled, now, calendar)
    if occurrence is not None:
        return occurrence.instant
    return now + timedelta(minutes=config.IDLE_REFRESH_MINUTES)


def include_daily(enabled: bool) -> RulePredicate:
    """Predicate for the Angelus toggle: drop daily rules when it is off"""
    def predicate(rule: RecurrenceRule) -> bool:
        return enabled or rule.is_weekly
    return predicate
