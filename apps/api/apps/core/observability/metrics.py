"""
Metrics instrumentation (Prometheus client).
"""
from functools import wraps
import time

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry for the inventory API.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        self._setup_metrics()

    def _setup_metrics(self):
        """Setup all application metrics."""

        # ===================================================================
        # Vehicle Metrics
        # ===================================================================
        self.vehicles_mutations_total = Counter(
            'bondyard_vehicles_mutations_total',
            'Vehicle create/update/delete operations',
            ['action']
        )

        # ===================================================================
        # Ledger Metrics
        # ===================================================================
        self.movements_recorded_total = Counter(
            'bondyard_movements_recorded_total',
            'Movements written to vehicle ledgers',
            ['movement_type']
        )

        self.movements_sync_duration_seconds = Histogram(
            'bondyard_movements_sync_duration_seconds',
            'Duration of full-replace movement sync',
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
        )

        # ===================================================================
        # Attachment Metrics
        # ===================================================================
        self.attachments_stored_total = Counter(
            'bondyard_attachments_stored_total',
            'Attachment store attempts',
            ['backend', 'result']
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.movements_sync_duration_seconds)
            def sync_movements(vehicle, movements):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()
