# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Reminder synchronization package
"""
from sync.engine import ReminderSynchronizer
from sync.history import SyncHistory
from sync.report import AuthorizationError, FailureReason, SyncError, SyncReport
from sync.scheduler import SyncScheduler
from sync.validator import SyncValidator
