# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Calendar operations: occurrence resolution and reminder triggers
"""
from cal_ops.resolver import (
    include_daily,
    next_occurrence_of,
    next_refresh_time,
    resolve_next,
    upcoming_occurrences,
)
from cal_ops.triggers import DailyTrigger, WeeklyTrigger, build_trigger, reminder_body
