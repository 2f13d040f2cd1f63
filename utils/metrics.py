# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Metrics Collector - Track reminder sync performance
"""
import statistics
from collections import defaultdict
from datetime import timedelta
from threading import Lock
from typing import Dict, List

from utils.timezone import get_local_time


class MetricsCollector:
    """Collects counts and durations of reminder sync runs"""

    def __init__(self, max_entries: int = 10000):
        self.metrics = defaultdict(list)
        self.max_entries = max_entries
        self._lock = Lock()

    def record_sync_duration(self, duration_seconds: float):
        self._add_metric('sync_duration', {
            'timestamp': get_local_time(),
            'duration': duration_seconds
        })

    def record_sync_result(self, scheduled: int, removed: int, failed: int):
        self._add_metric('sync_results', {
            'timestamp': get_local_time(),
            'scheduled': scheduled,
            'removed': removed,
            'failed': failed,
            'total_operations': scheduled + removed + failed
        })

    def record_error(self, error_type: str, error_message: str):
        self._add_metric('errors', {
            'timestamp': get_local_time(),
            'error_type': error_type,
            'error_message': error_message[:200]
        })

    def get_metrics_summary(self, hours: int = 24) -> Dict:
        cutoff_time = get_local_time() - timedelta(hours=hours)
        with self._lock:
            durations = [m['duration'] for m in self.metrics['sync_duration'] if m['timestamp'] > cutoff_time]
            results = [m for m in self.metrics['sync_results'] if m['timestamp'] > cutoff_time]
            errors = [m for m in self.metrics['errors'] if m['timestamp'] > cutoff_time]

        summary = {
            'period_hours': hours,
            'sync_count': len(durations),
            'average_duration': statistics.mean(durations) if durations else 0,
            'p90_duration': self._percentile(durations, 90),
            'scheduled': sum(r['scheduled'] for r in results),
            'removed': sum(r['removed'] for r in results),
            'failed': sum(r['failed'] for r in results),
            'errors_by_type': {},
        }

        by_type = defaultdict(int)
        for error in errors:
            by_type[error['error_type']] += 1
        summary['errors_by_type'] = dict(by_type)

        return summary

    def _add_metric(self, metric_type: str, metric_data: Dict):
        with self._lock:
            self.metrics[metric_type].append(metric_data)
            if len(self.metrics[metric_type]) > self.max_entries:
                self.metrics[metric_type] = self.metrics[metric_type][-self.max_entries:]

    def _percentile(self, data: List[float], percentile: int) -> float:
        if not data:
            return 0

        sorted_data = sorted(data)
        index = (percentile / 100) * (len(sorted_data) - 1)
        lower = sorted_data[int(index)]
        if index.is_integer():
            return lower
        upper = sorted_data[int(index) + 1]
        return lower + (upper - lower) * (index - int(index))

    def clear_metrics(self):
        with self._lock:
            self.metrics.clear()
