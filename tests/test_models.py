"""
Model tests - recurrence rules and schedules are validated at construction
"""

import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import (
    DailyRecurrence,
    InvalidRuleError,
    RecurrenceRule,
    Schedule,
    Weekday,
    WeeklyRecurrence,
)


class TestRuleValidation:
    """Out-of-range or mistyped components never produce a rule"""

    @pytest.mark.unit
    @pytest.mark.parametrize("hour,minute,second", [
        (24, 0, 0),
        (-1, 0, 0),
        (9, 60, 0),
        (9, 0, 60),
    ])
    def test_out_of_range_time_rejected(self, hour, minute, second):
        with pytest.raises(InvalidRuleError):
            RecurrenceRule.daily(hour, minute, second)

    @pytest.mark.unit
    @pytest.mark.parametrize("weekday", [0, 8, "Sunday", None])
    def test_bad_weekday_rejected(self, weekday):
        with pytest.raises(InvalidRuleError):
            RecurrenceRule.weekly(weekday, 9, 0)

    @pytest.mark.unit
    def test_bool_is_not_an_hour(self):
        with pytest.raises(InvalidRuleError):
            RecurrenceRule.daily(True, 0)

    @pytest.mark.unit
    def test_empty_id_rejected(self):
        with pytest.raises(InvalidRuleError):
            RecurrenceRule.daily(6, 0, rule_id="  ")

    @pytest.mark.unit
    def test_invalid_rule_error_is_value_error(self):
        assert issubclass(InvalidRuleError, ValueError)

    @pytest.mark.unit
    def test_boundary_values_accepted(self):
        rule = RecurrenceRule.weekly(Weekday.SATURDAY, 23, 59, 59)
        assert rule.kind.time_components() == (23, 59, 59)
        assert RecurrenceRule.weekly(1, 0, 0).kind.weekday == Weekday.SUNDAY


class TestWeekday:

    @pytest.mark.unit
    def test_sunday_first_numbering(self):
        assert Weekday.SUNDAY.value == 1
        assert Weekday.SATURDAY.value == 7

    @pytest.mark.unit
    def test_python_weekday_mapping(self):
        assert Weekday.MONDAY.python_weekday == 0
        assert Weekday.SUNDAY.python_weekday == 6
        for weekday in Weekday:
            assert Weekday.from_python_weekday(weekday.python_weekday) == weekday


class TestRecurrenceRule:

    @pytest.mark.unit
    def test_display_title_prefers_label(self):
        rule = RecurrenceRule.weekly(Weekday.SUNDAY, 9, 0, label="Sunday Mass")
        assert rule.display_title() == "Sunday Mass"

    @pytest.mark.unit
    def test_display_title_fallbacks(self):
        assert RecurrenceRule.weekly(Weekday.FRIDAY, 7, 0).display_title() == "Friday Service"
        assert RecurrenceRule.weekly(Weekday.FRIDAY, 7, 0, label="   ").display_title() == "Friday Service"
        assert RecurrenceRule.daily(12, 0).display_title() == "Daily Service"

    @pytest.mark.unit
    def test_generated_ids_are_unique(self):
        assert RecurrenceRule.daily(6, 0).id != RecurrenceRule.daily(6, 0).id

    @pytest.mark.unit
    def test_with_time_keeps_id(self):
        rule = RecurrenceRule.weekly(Weekday.SUNDAY, 9, 0, label="Sunday Mass", rule_id="sun")
        moved = rule.with_time(10, 30)

        assert moved.id == "sun"
        assert moved.label == "Sunday Mass"
        assert moved.kind == WeeklyRecurrence(Weekday.SUNDAY, 10, 30)
        assert rule.kind.hour == 9

    @pytest.mark.unit
    def test_dict_form(self):
        weekly = RecurrenceRule.weekly(Weekday.SATURDAY, 17, 0, label="Vigil Mass", rule_id="vigil")
        daily = RecurrenceRule.daily(6, 0, label="Angelus", rule_id="angelus-6")

        assert weekly.to_dict() == {
            'id': 'vigil', 'kind': 'weekly', 'weekday': 7,
            'hour': 17, 'minute': 0, 'second': 0, 'label': 'Vigil Mass',
        }
        assert 'weekday' not in daily.to_dict()
        assert RecurrenceRule.from_dict(weekly.to_dict()) == weekly

    @pytest.mark.unit
    def test_missing_second_defaults_to_zero(self):
        rule = RecurrenceRule.from_dict({'id': 'a', 'kind': 'daily', 'hour': 6, 'minute': 0})
        assert rule.kind == DailyRecurrence(6, 0, 0)

    @pytest.mark.unit
    @pytest.mark.parametrize("data", [
        {'id': 'a', 'kind': 'weekly', 'hour': 9, 'minute': 0},
        {'id': 'a', 'kind': 'daily', 'weekday': 1, 'hour': 9, 'minute': 0},
        {'id': 'a', 'kind': 'monthly', 'hour': 9, 'minute': 0},
        {'kind': 'daily', 'hour': 9, 'minute': 0},
        {'id': 'a', 'kind': 'daily', 'minute': 0},
        ['not', 'a', 'dict'],
    ])
    def test_from_dict_rejects_incomplete_rules(self, data):
        with pytest.raises(InvalidRuleError):
            RecurrenceRule.from_dict(data)


class TestSchedule:

    @pytest.mark.unit
    def test_duplicate_rule_ids_rejected(self):
        with pytest.raises(InvalidRuleError):
            Schedule("St. Edward", [
                RecurrenceRule.daily(6, 0, rule_id="same"),
                RecurrenceRule.daily(12, 0, rule_id="same"),
            ])

    @pytest.mark.unit
    def test_empty_schedule(self):
        schedule = Schedule.empty()
        assert schedule.is_empty()
        assert schedule.owner_name == ''

    @pytest.mark.unit
    def test_with_rules_returns_new_snapshot(self):
        original = Schedule("St. Edward", [RecurrenceRule.daily(6, 0, rule_id="a")])
        updated = original.with_rules(list(original.rules) + [RecurrenceRule.daily(12, 0, rule_id="b")])

        assert len(original.rules) == 1
        assert len(updated.rules) == 2
        assert updated.owner_name == "St. Edward"

    @pytest.mark.unit
    def test_lookup_helpers(self):
        sunday = RecurrenceRule.weekly(Weekday.SUNDAY, 9, 0, rule_id="sun")
        angelus = RecurrenceRule.daily(12, 0, rule_id="noon")
        schedule = Schedule("St. Edward", [sunday, angelus])

        assert schedule.rule_by_id("noon") == angelus
        assert schedule.rule_by_id("missing") is None
        assert schedule.weekly_rules() == [sunday]

    @pytest.mark.unit
    def test_dict_form_uses_owner_name_key(self):
        schedule = Schedule("St. Edward", [RecurrenceRule.daily(6, 0, rule_id="a")])
        data = schedule.to_dict()

        assert data['ownerName'] == "St. Edward"
        assert Schedule.from_dict(data) == schedule

    @pytest.mark.unit
    def test_rules_must_be_a_list(self):
        with pytest.raises(InvalidRuleError):
            Schedule.from_dict({'ownerName': 'x', 'rules': 'nope'})
