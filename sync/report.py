# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync Report - Per-rule outcome of one reminder reschedule
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class FailureReason(Enum):
    """Why a single rule's reminder could not be scheduled"""
    PERMISSION_DENIED = "permission_denied"
    TRANSPORT_ERROR = "transport_error"


class SyncError(Exception):
    """The reschedule could not run at all (nothing was changed)"""
    pass


class AuthorizationError(Exception):
    """Asking for reminder permission failed (distinct from the user saying no)"""
    pass


class SyncReport:
    """
    Outcome of reschedule_all.

    One failed rule never fails the whole report; callers can retry the
    identifiers listed in `failed` individually.
    """

    def __init__(self, schedule_owner: str, started_at: Optional[datetime] = None, dry_run: bool = False):
        self.schedule_owner = schedule_owner
        self.started_at = started_at
        self.dry_run = dry_run
        self.duration = 0.0

        self.succeeded: List[str] = []
        self.failed: Dict[str, Tuple[FailureReason, str]] = {}
        self.removed: List[str] = []
        self.stale_failures: Dict[str, str] = {}

    def record_success(self, identifier: str):
        self.succeeded.append(identifier)

    def record_failure(self, identifier: str, reason: FailureReason, message: str):
        self.failed[identifier] = (reason, message)

    @property
    def success(self) -> bool:
        return not self.failed and not self.stale_failures

    @property
    def failed_identifiers(self) -> List[str]:
        return list(self.failed)

    def summary(self) -> str:
        prefix = "DRY RUN: would schedule" if self.dry_run else "Scheduled"
        return (f"{prefix} {len(self.succeeded)}, removed {len(self.removed)} stale, "
                f"{len(self.failed)} failed")

    def to_dict(self) -> Dict:
        return {
            'schedule_owner': self.schedule_owner,
            'success': self.success,
            'dry_run': self.dry_run,
            'message': self.summary(),
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'duration': self.duration,
            'succeeded': list(self.succeeded),
            'failed': {
                identifier: {'reason': reason.value, 'message': message}
                for identifier, (reason, message) in self.failed.items()
            },
            'removed': list(self.removed),
            'stale_failures': dict(self.stale_failures),
        }

    def __repr__(self):
        return f"SyncReport({self.summary()})"
