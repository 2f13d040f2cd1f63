# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync History - Track and analyze reminder reschedules over time
"""
import statistics
from collections import defaultdict
from datetime import timedelta
from threading import Lock
from typing import Dict, List

from utils.timezone import get_local_time


class SyncHistory:
    """Manages historical reschedule data and statistics"""

    def __init__(self, max_entries: int = 100):
        self.history: List[Dict] = []
        self.max_entries = max_entries
        self._lock = Lock()

    def add_entry(self, report):
        """Add a SyncReport to history"""
        entry = {
            'timestamp': get_local_time(),
            'owner': report.schedule_owner,
            'duration': report.duration,
            'success': report.success,
            'operations': {
                'scheduled': len(report.succeeded),
                'removed': len(report.removed),
                'failed': len(report.failed) + len(report.stale_failures),
            },
            'dry_run': report.dry_run,
            'failed': report.to_dict()['failed'],
            'stale_failures': dict(report.stale_failures),
        }

        with self._lock:
            self.history.append(entry)
            if len(self.history) > self.max_entries:
                self.history.pop(0)

    def _recent(self, hours: int) -> List[Dict]:
        cutoff_time = get_local_time() - timedelta(hours=hours)
        with self._lock:
            return [entry for entry in self.history if entry['timestamp'] > cutoff_time]

    def get_statistics(self, hours: int = 24) -> Dict:
        """Calculate statistics for the given time period"""
        recent_entries = self._recent(hours)

        if not recent_entries:
            return {
                'period_hours': hours,
                'total_syncs': 0,
                'successful_syncs': 0,
                'failed_syncs': 0,
                'success_rate': 0,
                'average_duration': 0,
                'total_operations': {'scheduled': 0, 'removed': 0, 'failed': 0},
                'last_sync': None,
                'last_successful_sync': None,
            }

        successful_syncs = [e for e in recent_entries if e['success'] and not e['dry_run']]
        failed_syncs = [e for e in recent_entries if not e['success']]

        durations = [e['duration'] for e in successful_syncs if e['duration'] > 0]

        total_operations = defaultdict(int)
        for entry in recent_entries:
            if entry['dry_run']:
                continue
            for op_type, count in entry['operations'].items():
                total_operations[op_type] += count

        last_sync = recent_entries[-1]
        last_successful = next((e for e in reversed(recent_entries) if e['success']), None)

        duration_percentiles = {}
        if durations:
            duration_percentiles = {
                'p50': statistics.median(durations),
                'p90': self._percentile(durations, 90),
                'min': min(durations),
                'max': max(durations)
            }

        return {
            'period_hours': hours,
            'total_syncs': len(recent_entries),
            'successful_syncs': len(successful_syncs),
            'failed_syncs': len(failed_syncs),
            'success_rate': len(successful_syncs) / len(recent_entries) * 100,
            'average_duration': statistics.mean(durations) if durations else 0,
            'duration_percentiles': duration_percentiles,
            'total_operations': dict(total_operations),
            'last_sync': last_sync['timestamp'].isoformat(),
            'last_successful_sync': last_successful['timestamp'].isoformat() if last_successful else None,
        }

    def get_recent_failures(self, limit: int = 10) -> List[Dict]:
        """Most recent reschedules that left at least one rule unscheduled"""
        with self._lock:
            failures = [
                {
                    'timestamp': entry['timestamp'].isoformat(),
                    'owner': entry['owner'],
                    'failed': entry['failed'],
                    'stale_failures': entry['stale_failures'],
                }
                for entry in reversed(self.history)
                if not entry['success']
            ]
        return failures[:limit]

    def clear_history(self):
        """Clear all history"""
        with self._lock:
            self.history.clear()

    def _percentile(self, data: List[float], percentile: int) -> float:
        """Calculate percentile of a sorted list"""
        if not data:
            return 0

        sorted_data = sorted(data)
        index = (percentile / 100) * (len(sorted_data) - 1)

        if index.is_integer():
            return sorted_data[int(index)]
        lower = sorted_data[int(index)]
        upper = sorted_data[int(index) + 1]
        return lower + (upper - lower) * (index - int(index))
