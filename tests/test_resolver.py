"""
Occurrence resolver tests - next service, ties, upcoming list and DST edges

All wall-clock times are America/Chicago.
"""

import pytest
import random
from datetime import datetime, timedelta
import sys
import os

import pytz

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from cal_ops.resolver import (
    include_daily,
    next_occurrence_of,
    next_refresh_time,
    resolve_next,
    upcoming_occurrences,
)
from models import RecurrenceRule, Weekday
from presets import angelus_rules

CHICAGO = pytz.timezone('America/Chicago')


def local(*args):
    return CHICAGO.localize(datetime(*args))


@pytest.fixture
def sunday_mass():
    return RecurrenceRule.weekly(Weekday.SUNDAY, 9, 0, label="Sunday Mass", rule_id="sunday")


@pytest.fixture
def angelus():
    return [
        RecurrenceRule.daily(6, 0, label="Angelus", rule_id="angelus-06"),
        RecurrenceRule.daily(12, 0, label="Angelus", rule_id="angelus-12"),
        RecurrenceRule.daily(18, 0, label="Angelus", rule_id="angelus-18"),
    ]


class TestNextOccurrence:
    """Single-rule resolution"""

    @pytest.mark.resolver
    def test_weekly_from_saturday_night(self, sunday_mass):
        # 2024-06-15 is a Saturday
        result = next_occurrence_of(sunday_mass, local(2024, 6, 15, 23, 0, 0), CHICAGO)
        assert result == local(2024, 6, 16, 9, 0, 0)

    @pytest.mark.resolver
    def test_weekly_at_exact_instant_moves_a_week(self, sunday_mass):
        result = next_occurrence_of(sunday_mass, local(2024, 6, 16, 9, 0, 0), CHICAGO)
        assert result == local(2024, 6, 23, 9, 0, 0)

    @pytest.mark.resolver
    def test_weekly_one_second_before(self, sunday_mass):
        result = next_occurrence_of(sunday_mass, local(2024, 6, 16, 8, 59, 59), CHICAGO)
        assert result == local(2024, 6, 16, 9, 0, 0)

    @pytest.mark.resolver
    def test_seconds_are_honored(self):
        rule = RecurrenceRule.daily(6, 0, 30, rule_id="d")
        assert next_occurrence_of(rule, local(2024, 6, 16, 6, 0, 10), CHICAGO) == local(2024, 6, 16, 6, 0, 30)

    @pytest.mark.resolver
    def test_reference_in_another_zone(self, sunday_mass):
        # 2024-06-16 13:30 UTC is 08:30 CDT on Sunday
        after = pytz.UTC.localize(datetime(2024, 6, 16, 13, 30))
        assert next_occurrence_of(sunday_mass, after, CHICAGO) == local(2024, 6, 16, 9, 0, 0)

    @pytest.mark.resolver
    def test_naive_reference_rejected(self, sunday_mass):
        with pytest.raises(ValueError):
            next_occurrence_of(sunday_mass, datetime(2024, 6, 15, 23, 0), CHICAGO)

    @pytest.mark.resolver
    def test_always_strictly_after(self, sunday_mass, angelus):
        rng = random.Random(7)
        rules = [sunday_mass, RecurrenceRule.weekly(Weekday.SATURDAY, 23, 59, 59, rule_id="late")] + angelus
        start = local(2024, 1, 1, 0, 0, 0)

        for _ in range(200):
            after = start + timedelta(seconds=rng.randrange(0, 366 * 24 * 3600))
            for rule in rules:
                result = next_occurrence_of(rule, after, CHICAGO)
                assert result is not None
                assert result > after
                assert result - after <= timedelta(days=7, hours=1)


class TestDaylightSaving:
    """2024-03-10 02:00 skips to 03:00; 2024-11-03 01:00-02:00 happens twice"""

    @pytest.mark.resolver
    def test_daily_rule_in_gap_moves_to_next_day(self):
        rule = RecurrenceRule.daily(2, 30, rule_id="gap")
        result = next_occurrence_of(rule, local(2024, 3, 10, 0, 0, 0), CHICAGO)

        assert result == local(2024, 3, 11, 2, 30, 0)
        assert result.utcoffset() == timedelta(hours=-5)

    @pytest.mark.resolver
    def test_weekly_rule_in_gap_moves_to_next_week(self):
        rule = RecurrenceRule.weekly(Weekday.SUNDAY, 2, 30, rule_id="gap")
        result = next_occurrence_of(rule, local(2024, 3, 9, 12, 0, 0), CHICAGO)
        assert result == local(2024, 3, 17, 2, 30, 0)

    @pytest.mark.resolver
    def test_repeated_hour_uses_first_instant(self):
        rule = RecurrenceRule.daily(1, 30, rule_id="overlap")
        result = next_occurrence_of(rule, local(2024, 11, 3, 0, 0, 0), CHICAGO)

        assert result.astimezone(pytz.UTC) == pytz.UTC.localize(datetime(2024, 11, 3, 6, 30))

    @pytest.mark.resolver
    def test_second_pass_of_repeated_hour_is_skipped(self):
        rule = RecurrenceRule.daily(1, 30, rule_id="overlap")
        # Just after the first 01:30 (CDT); the repeat at 01:30 CST is not an occurrence
        after = pytz.UTC.localize(datetime(2024, 11, 3, 6, 31))
        result = next_occurrence_of(rule, after, CHICAGO)

        assert result == local(2024, 11, 4, 1, 30, 0)


class TestResolveNext:
    """Across rules: earliest wins, ties are deterministic"""

    @pytest.mark.resolver
    def test_daily_from_seven_am(self, angelus):
        result = resolve_next(angelus, None, local(2024, 6, 18, 7, 0, 0), CHICAGO)

        assert result.instant == local(2024, 6, 18, 12, 0, 0)
        assert result.rule_id == "angelus-12"
        assert result.title == "Angelus"

    @pytest.mark.resolver
    def test_all_disabled_returns_none(self, angelus):
        assert resolve_next(angelus, lambda rule: False, local(2024, 6, 18, 7, 0, 0), CHICAGO) is None

    @pytest.mark.resolver
    def test_no_rules_returns_none(self):
        assert resolve_next([], None, local(2024, 6, 18, 7, 0, 0), CHICAGO) is None

    @pytest.mark.resolver
    def test_weekly_wins_tie_against_daily(self):
        weekly = RecurrenceRule.weekly(Weekday.SUNDAY, 12, 0, label="Noon Mass", rule_id="zzz")
        daily = RecurrenceRule.daily(12, 0, label="Angelus", rule_id="aaa")

        result = resolve_next([daily, weekly], None, local(2024, 6, 16, 7, 0, 0), CHICAGO)
        assert result.rule_id == "zzz"

    @pytest.mark.resolver
    def test_same_kind_tie_goes_to_lower_id(self):
        first = RecurrenceRule.daily(12, 0, rule_id="a-rule")
        second = RecurrenceRule.daily(12, 0, rule_id="b-rule")

        assert resolve_next([second, first], None, local(2024, 6, 16, 7, 0, 0), CHICAGO).rule_id == "a-rule"

    @pytest.mark.resolver
    def test_reordering_rules_never_changes_result(self, sunday_mass, angelus):
        rules = [sunday_mass,
                 RecurrenceRule.weekly(Weekday.SUNDAY, 12, 0, rule_id="noon-mass"),
                 RecurrenceRule.daily(12, 0, rule_id="noon-prayer")] + angelus
        rng = random.Random(11)
        start = local(2024, 6, 10, 0, 0, 0)

        for _ in range(50):
            after = start + timedelta(minutes=rng.randrange(0, 14 * 24 * 60))
            expected = resolve_next(rules, None, after, CHICAGO)
            shuffled = list(rules)
            rng.shuffle(shuffled)
            assert resolve_next(shuffled, None, after, CHICAGO) == expected

    @pytest.mark.resolver
    def test_angelus_toggle_excludes_daily_rules(self, sunday_mass, angelus):
        rules = [sunday_mass] + angelus
        after = local(2024, 6, 16, 7, 0, 0)

        assert resolve_next(rules, include_daily(True), after, CHICAGO).rule_id == "sunday"
        assert resolve_next(rules, include_daily(True), local(2024, 6, 15, 7, 0, 0), CHICAGO).rule_id == "angelus-12"
        assert resolve_next(rules, include_daily(False), local(2024, 6, 15, 7, 0, 0), CHICAGO).rule_id == "sunday"


class TestUpcoming:

    @pytest.mark.resolver
    def test_upcoming_is_sorted_and_limited(self, sunday_mass, angelus):
        result = upcoming_occurrences([sunday_mass] + angelus, None, local(2024, 6, 15, 13, 0, 0), CHICAGO, limit=5)

        assert [o.instant for o in result] == [
            local(2024, 6, 15, 18, 0, 0),
            local(2024, 6, 16, 6, 0, 0),
            local(2024, 6, 16, 9, 0, 0),
            local(2024, 6, 16, 12, 0, 0),
            local(2024, 6, 16, 18, 0, 0),
        ]
        assert result[2].title == "Sunday Mass"

    @pytest.mark.resolver
    def test_upcoming_repeats_a_single_rule(self, sunday_mass):
        result = upcoming_occurrences([sunday_mass], None, local(2024, 6, 15, 13, 0, 0), CHICAGO, limit=3)
        assert [o.instant.date().day for o in result] == [16, 23, 30]

    @pytest.mark.resolver
    def test_upcoming_zero_limit(self, sunday_mass):
        assert upcoming_occurrences([sunday_mass], None, local(2024, 6, 15, 13, 0, 0), CHICAGO, limit=0) == []

    @pytest.mark.resolver
    def test_first_upcoming_matches_resolve_next(self, sunday_mass):
        rules = [sunday_mass] + angelus_rules()
        after = local(2024, 6, 15, 13, 0, 0)
        assert upcoming_occurrences(rules, None, after, CHICAGO, limit=1)[0] == resolve_next(rules, None, after, CHICAGO)


class TestRefreshTime:

    @pytest.mark.resolver
    def test_refresh_at_next_occurrence(self, sunday_mass):
        now = local(2024, 6, 15, 13, 0, 0)
        assert next_refresh_time([sunday_mass], None, now, CHICAGO) == local(2024, 6, 16, 9, 0, 0)

    @pytest.mark.resolver
    def test_refresh_when_nothing_scheduled(self):
        now = local(2024, 6, 15, 13, 0, 0)
        expected = now + timedelta(minutes=config.IDLE_REFRESH_MINUTES)
        assert next_refresh_time([], None, now, CHICAGO) == expected
