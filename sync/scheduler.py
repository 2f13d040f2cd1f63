# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Background Scheduler for periodic reminder resync
"""
import logging
import threading
from threading import Lock

import schedule

import config
from sync.report import SyncError
from utils.timezone import format_local_time, get_local_time

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Re-applies the current schedule on a fixed interval"""

    def __init__(self, synchronizer, interval_minutes: int = None, poll_seconds: float = 30):
        self.synchronizer = synchronizer
        self.interval_minutes = interval_minutes or config.RESYNC_INTERVAL_MIN
        self.poll_seconds = poll_seconds
        self.scheduler = schedule.Scheduler()
        self.scheduler_lock = Lock()
        self.scheduler_running = False
        self.scheduler_thread = None
        self._stop_event = threading.Event()

    def start(self):
        """Start the scheduler"""
        with self.scheduler_lock:
            if self.scheduler_thread is None or not self.scheduler_thread.is_alive():
                logger.info(f"Starting scheduler thread at {format_local_time(get_local_time())}...")
                self.scheduler.clear()
                self.scheduler.every(self.interval_minutes).minutes.do(self._scheduled_resync)
                self._stop_event.clear()
                self.scheduler_running = True
                self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
                self.scheduler_thread.start()
            else:
                logger.info("Scheduler already running")

    def stop(self):
        """Stop the scheduler"""
        with self.scheduler_lock:
            self.scheduler_running = False
            self._stop_event.set()
            self.scheduler.clear()

        logger.info(f"Stopping scheduler at {format_local_time(get_local_time())}...")

    def is_running(self):
        """Check if scheduler is running"""
        with self.scheduler_lock:
            return bool(self.scheduler_running and self.scheduler_thread and self.scheduler_thread.is_alive())

    def _run_scheduler(self):
        logger.info(f"Scheduler started - resync every {self.interval_minutes} minutes")

        while not self._stop_event.is_set():
            self.scheduler.run_pending()
            self._stop_event.wait(self.poll_seconds)

        logger.info(f"Scheduler stopped at {format_local_time(get_local_time())}")

    def _scheduled_resync(self):
        """Function called by scheduler; errors are logged so the loop keeps going"""
        if self.synchronizer.authorized is False:
            logger.warning("⚠️ Scheduled resync skipped - reminder delivery not authorized")
            return

        logger.info(f"Running scheduled resync at {format_local_time(get_local_time())}")
        try:
            report = self.synchronizer.reschedule_all(self.synchronizer.schedule)
        except SyncError as e:
            logger.error(f"❌ Scheduled resync failed: {e}")
            return
        except Exception as e:
            # Don't let unexpected errors kill the scheduler thread
            logger.error(f"❌ Scheduled resync crashed: {type(e).__name__}: {e}")
            return

        if report.success:
            logger.info(f"✅ Scheduled resync completed: {report.summary()}")
        else:
            logger.warning(f"⚠️ Scheduled resync completed with issues: {report.summary()}")
