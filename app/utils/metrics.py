"""
Metrics Collection for the notification engine.

In-process counters and timers for derivation runs, exposed at /metrics.
"""

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict


class MetricsCollector:
    """Collects and manages metrics for derivation runs."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()
        self.reset()

    def reset(self):
        """Zero every counter and timer."""
        with self.lock:
            self.metrics.clear()
            self.timers.clear()
            self.metrics["derivation_runs_total"] = 0
            self.metrics["derivation_failures_total"] = 0
            self.metrics["notifications_created_total"] = 0
            self.metrics["duplicates_skipped_total"] = 0
            self.metrics["malformed_dates_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": datetime.utcnow().isoformat()
            }

    @contextmanager
    def time_operation(self, metric_name: str):
        """Context manager to time an operation, including failed ones."""
        start_time = time.time()
        try:
            yield
        finally:
            self.record_timer(metric_name, time.time() - start_time)


# Global metrics instance
metrics_collector = MetricsCollector()
