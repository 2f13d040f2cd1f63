# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Reminder Synchronizer - Keeps the gateway's reminders in step with the schedule

Protocol for every run:
  1. target identifiers = one per enabled rule, derived from the rule id only
  2. remove known identifiers in our namespace that are not targets (stale)
  3. for each target: remove, then add with a fresh repeating trigger
  4. collect per-rule outcomes; one failing rule never stops the others

Running it twice with the same schedule leaves the gateway unchanged.
Concurrent callers are serialized, and callers that arrive while a run is in
flight are folded into one trailing run with the latest schedule.
"""
import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

import config
from cal_ops.resolver import next_refresh_time, resolve_next, upcoming_occurrences
from cal_ops.triggers import build_trigger, reminder_body
from gateway.base import GatewayError, PermissionDeniedError, ReminderGateway
from identifiers import target_identifiers
from models import Occurrence, RecurrenceRule, Schedule
from storage import ScheduleStore
from sync.history import SyncHistory
from sync.report import AuthorizationError, FailureReason, SyncError, SyncReport
from sync.validator import SyncValidator
from utils.logger import StructuredLogger
from utils.metrics import MetricsCollector
from utils.timezone import get_local_time

logger = logging.getLogger(__name__)

RulePredicate = Callable[[RecurrenceRule], bool]

# Outcomes kept for callers still waking up after their run finished
RESULT_BACKLOG = 16


class ReminderSynchronizer:
    """Core engine for reminder synchronization"""

    def __init__(self, gateway: ReminderGateway, store: Optional[ScheduleStore] = None,
                 enabled: Optional[RulePredicate] = None, calendar=None,
                 namespace: Optional[str] = None, dry_run: Optional[bool] = None):
        self.gateway = gateway
        self.store = store
        self.enabled = enabled
        self.calendar = calendar or config.TIMEZONE
        self.namespace = config.REMINDER_NAMESPACE if namespace is None else namespace
        self._dry_run = dry_run

        # Single-flight state
        self._condition = threading.Condition()
        self._running = False
        self._pending: Optional[Schedule] = None
        self._requested = 0
        self._completed = 0
        self._results = []

        loaded = store.load() if store is not None else None
        self._schedule = loaded if loaded is not None else Schedule.empty()

        self.authorized: Optional[bool] = None
        self.last_sync_time: Optional[datetime] = None
        self.last_report: Optional[SyncReport] = None

        self.structured_logger = StructuredLogger(__name__)
        self.metrics = MetricsCollector()
        self.history = SyncHistory()
        self.validator = SyncValidator()

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    @property
    def schedule(self) -> Schedule:
        with self._condition:
            return self._schedule

    @property
    def dry_run(self) -> bool:
        """Explicit setting if given, else whatever config says right now"""
        return config.DRY_RUN_MODE if self._dry_run is None else self._dry_run

    @property
    def sync_in_progress(self) -> bool:
        with self._condition:
            return self._running

    def current_next(self, now: Optional[datetime] = None) -> Optional[Occurrence]:
        """Next occurrence for the schedule currently held"""
        return resolve_next(self.schedule.rules, self.enabled, now or get_local_time(self.calendar),
                            self.calendar)

    def upcoming(self, now: Optional[datetime] = None, limit: Optional[int] = None) -> List[Occurrence]:
        return upcoming_occurrences(self.schedule.rules, self.enabled, now or get_local_time(self.calendar),
                                    self.calendar, config.UPCOMING_LIMIT if limit is None else limit)

    def next_refresh_time(self, now: Optional[datetime] = None) -> datetime:
        return next_refresh_time(self.schedule.rules, self.enabled, now or get_local_time(self.calendar),
                                 self.calendar)

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def request_authorization(self) -> bool:
        """
        Ask the gateway for permission to deliver reminders.

        False is a normal answer: the caller should stop expecting reminders.
        AuthorizationError means the question itself could not be asked.
        """
        try:
            granted = self.gateway.request_authorization()
        except GatewayError as e:
            logger.error(f"❌ Reminder authorization request failed: {e}")
            raise AuthorizationError(str(e)) from e

        self.authorized = bool(granted)
        if self.authorized:
            logger.info("🔔 Reminder delivery authorized")
        else:
            logger.warning("🔕 Reminder delivery declined - reminders will not be delivered")
        return self.authorized

    # ------------------------------------------------------------------
    # Schedule edits
    # ------------------------------------------------------------------

    def update_schedule(self, schedule: Schedule) -> SyncReport:
        """Persist a new schedule, then bring reminders in line with it"""
        persist = (lambda: self.store.save(schedule)) if self.store is not None else None
        return self._submit(schedule, persist)

    def clear_schedule(self) -> SyncReport:
        """Forget the schedule and remove every reminder we own"""
        persist = self.store.clear if self.store is not None else None
        return self._submit(Schedule.empty(), persist)

    def set_enabled(self, enabled: Optional[RulePredicate]) -> SyncReport:
        """Change which rules get reminders and reschedule the current schedule"""
        self.enabled = enabled
        return self.reschedule_all(self.schedule)

    # ------------------------------------------------------------------
    # Reschedule protocol
    # ------------------------------------------------------------------

    def reschedule_all(self, schedule: Schedule) -> SyncReport:
        """
        Make the gateway hold exactly one reminder per enabled rule.

        Returns:
            SyncReport with per-rule outcomes

        Raises:
            SyncError: if the known reminders could not be listed
        """
        return self._submit(schedule)

    def _submit(self, schedule: Schedule, persist: Optional[Callable[[], None]] = None) -> SyncReport:
        with self._condition:
            # Stored and live schedule change together, in arrival order
            if persist is not None:
                persist()
            self._schedule = schedule
            self._pending = schedule
            self._requested += 1
            ticket = self._requested

            if self._running:
                logger.info("⏳ Reschedule already in progress - folding into trailing run")
                while self._completed < ticket:
                    self._condition.wait()
                report, error = self._outcome_for(ticket)
                if error is not None:
                    raise error
                return report

            self._running = True

        return self._drain()

    def _outcome_for(self, ticket: int):
        for covered, outcome in self._results:
            if covered >= ticket:
                return outcome
        return self._results[-1][1]

    def _drain(self) -> SyncReport:
        """Run until no newer schedule is waiting; only one thread is ever here"""
        outcome = (None, None)

        while True:
            with self._condition:
                if self._pending is None:
                    self._running = False
                    break
                schedule, self._pending = self._pending, None
                covered = self._requested

            try:
                outcome = (self._run(schedule), None)
            except Exception as e:
                # Waiters for this run receive the same exception
                outcome = (None, e)

            with self._condition:
                self._results.append((covered, outcome))
                del self._results[:-RESULT_BACKLOG]
                self._completed = covered
                self._condition.notify_all()

        report, error = outcome
        if error is not None:
            raise error
        return report

    def _is_enabled(self, rule: RecurrenceRule, enabled: Optional[RulePredicate]) -> bool:
        return enabled is None or enabled(rule)

    def _run(self, schedule: Schedule) -> SyncReport:
        start_time = get_local_time(self.calendar)
        started = time.monotonic()
        enabled = self.enabled
        dry_run = self.dry_run

        report = SyncReport(schedule.owner_name, started_at=start_time, dry_run=dry_run)
        rules = [rule for rule in schedule.rules if self._is_enabled(rule, enabled)]
        targets = target_identifiers(rules, self.namespace)

        logger.info(f"🚀 Rescheduling {len(targets)} reminders for '{schedule.owner_name}'")
        self.structured_logger.log_sync_event('reschedule_started', {
            'owner': schedule.owner_name,
            'rules': len(schedule.rules),
            'targets': len(targets),
            'dry_run': dry_run
        })

        try:
            known = set(self.gateway.list_known_identifiers(self.namespace))
        except GatewayError as e:
            self.metrics.record_error('list_failed', str(e))
            self.structured_logger.log_sync_event('reschedule_failed', {'error': str(e)})
            raise SyncError(f"Could not list scheduled reminders: {e}") from e

        stale = sorted(known - set(targets))

        if dry_run:
            logger.info("🧪 DRY RUN MODE - No reminders will be changed")
            report.removed = stale
            report.succeeded = list(targets)
            return self._finish(report, started)

        if stale:
            try:
                self.gateway.remove(stale)
                report.removed = stale
                logger.info(f"🗑️ Removed {len(stale)} stale reminders")
            except GatewayError as e:
                logger.error(f"❌ Failed to remove stale reminders: {e}")
                for identifier in stale:
                    report.stale_failures[identifier] = str(e)

        for identifier, rule in targets.items():
            try:
                self.gateway.remove([identifier])
                self.gateway.add(identifier, rule.display_title(), reminder_body(rule), build_trigger(rule))
            except PermissionDeniedError as e:
                logger.warning(f"🔕 Not permitted to schedule '{rule.display_title()}': {e}")
                report.record_failure(identifier, FailureReason.PERMISSION_DENIED, str(e))
            except GatewayError as e:
                logger.error(f"❌ Failed to schedule '{rule.display_title()}': {e}")
                report.record_failure(identifier, FailureReason.TRANSPORT_ERROR, str(e))
            else:
                report.record_success(identifier)

        return self._finish(report, started)

    def _finish(self, report: SyncReport, started: float) -> SyncReport:
        report.duration = time.monotonic() - started

        self.last_sync_time = get_local_time(self.calendar)
        self.last_report = report

        if not report.dry_run:
            self.metrics.record_sync_duration(report.duration)
            self.metrics.record_sync_result(len(report.succeeded), len(report.removed),
                                            len(report.failed) + len(report.stale_failures))
        self.history.add_entry(report)

        self.structured_logger.log_sync_event('reschedule_completed', {
            'duration_seconds': report.duration,
            'scheduled': len(report.succeeded),
            'removed': len(report.removed),
            'failed': len(report.failed),
            'success': report.success,
            'dry_run': report.dry_run
        })

        if report.success:
            logger.info(f"🎉 Reschedule completed in {report.duration:.2f}s: {report.summary()}")
        else:
            logger.warning(f"⚠️ Reschedule completed with failures: {report.summary()}")
        return report

    # ------------------------------------------------------------------
    # Preview / validation / status
    # ------------------------------------------------------------------

    def preview(self, schedule: Optional[Schedule] = None) -> Dict:
        """What a reschedule would do, without changing any reminder"""
        schedule = self.schedule if schedule is None else schedule
        enabled = self.enabled
        targets = target_identifiers(
            [rule for rule in schedule.rules if self._is_enabled(rule, enabled)], self.namespace
        )

        try:
            known = set(self.gateway.list_known_identifiers(self.namespace))
        except GatewayError as e:
            raise SyncError(f"Could not list scheduled reminders: {e}") from e

        return {
            'to_remove': sorted(known - set(targets)),
            'to_replace': list(targets),
            'new': [identifier for identifier in targets if identifier not in known],
        }

    def validate(self, schedule: Optional[Schedule] = None):
        """Check the gateway holds exactly the reminders the schedule calls for"""
        schedule = self.schedule if schedule is None else schedule
        enabled = self.enabled
        rules = [rule for rule in schedule.rules if self._is_enabled(rule, enabled)]

        try:
            known = set(self.gateway.list_known_identifiers(self.namespace))
        except GatewayError as e:
            raise SyncError(f"Could not list scheduled reminders: {e}") from e

        return self.validator.generate_validation_report(rules, known, self.namespace)

    def get_status(self) -> Dict:
        schedule = self.schedule
        return {
            'sync_in_progress': self.sync_in_progress,
            'authorized': self.authorized,
            'dry_run_mode': self.dry_run,
            'schedule_owner': schedule.owner_name,
            'rule_count': len(schedule.rules),
            'last_sync_time': self.last_sync_time.isoformat() if self.last_sync_time else None,
            'last_sync_result': self.last_report.to_dict() if self.last_report else None,
        }
