# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Schedule presets offered when a parish first sets up reminders
"""
from enum import Enum
from typing import List, Optional

from models import RecurrenceRule, Schedule, Weekday

ANGELUS_LABEL = "Angelus"
ANGELUS_HOURS = (6, 12, 18)


class SchedulePreset(Enum):
    """Starting schedules for common community rhythms"""
    PARISH = "Parish"
    MONASTERY = "Monastery"
    COMMUTER = "Commuter"

    @property
    def title(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return PRESET_DESCRIPTIONS[self]

    def masses(self) -> List[RecurrenceRule]:
        """Fresh weekly rules (new ids) for this preset"""
        return [
            RecurrenceRule.weekly(weekday, hour, minute, label=label)
            for weekday, hour, minute, label in PRESET_MASSES[self]
        ]


PRESET_DESCRIPTIONS = {
    SchedulePreset.PARISH: "Great for traditional parish schedules with a mid-morning Mass.",
    SchedulePreset.MONASTERY: "Earlier bells, suited to the rhythm of a monastic community.",
    SchedulePreset.COMMUTER: "Evening-focused schedule for those who work during the day.",
}

PRESET_MASSES = {
    SchedulePreset.PARISH: [
        (Weekday.SUNDAY, 9, 0, "Sunday Mass"),
        (Weekday.SATURDAY, 17, 0, "Vigil Mass"),
    ],
    SchedulePreset.MONASTERY: [
        (Weekday.MONDAY, 6, 30, "Morning Office"),
        (Weekday.WEDNESDAY, 6, 30, "Community Mass"),
        (Weekday.FRIDAY, 6, 30, "First Friday"),
    ],
    SchedulePreset.COMMUTER: [
        (Weekday.TUESDAY, 19, 0, "Weeknight Mass"),
        (Weekday.SUNDAY, 18, 0, "Evening Service"),
    ],
}


def angelus_rules() -> List[RecurrenceRule]:
    """The Angelus at 6am, noon and 6pm"""
    return [RecurrenceRule.daily(hour, 0, label=ANGELUS_LABEL) for hour in ANGELUS_HOURS]


def build_schedule(preset: SchedulePreset, owner_name: str,
                   include_angelus: bool = True) -> Schedule:
    rules = preset.masses()
    if include_angelus:
        rules.extend(angelus_rules())
    return Schedule(owner_name, rules)


def preset_for(name: str) -> SchedulePreset:
    """Case-insensitive lookup by preset name; KeyError when unknown"""
    normalized = (name or '').strip().lower()
    for preset in SchedulePreset:
        if preset.value.lower() == normalized or preset.name.lower() == normalized:
            return preset
    raise KeyError(name)


def matching_preset(schedule: Schedule) -> Optional[SchedulePreset]:
    """The preset whose Masses equal the schedule's weekly rules, ignoring ids"""
    current = [(rule.kind, rule.label) for rule in schedule.weekly_rules()]
    for preset in SchedulePreset:
        expected = [(rule.kind, rule.label) for rule in preset.masses()]
        if expected == current:
            return preset
    return None
