"""
Prometheus metrics for the transaction time service.
"""
from datetime import timedelta
from typing import Any
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
import psutil
import structlog
import os

log = structlog.get_logger()

TRANSACTION_TIME_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600)


class Metrics:
    """
    Centralized metrics for the transaction time service.
    """

    def __init__(self, service_name: str = "transaction-time", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            registry=self.registry,
        )

        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Correlation
        self.events_received_total = Counter(
            "transaction_time_events_total",
            "Events seen by the filter, by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.transactions_expired_total = Counter(
            "transaction_time_expired_total",
            "Pending transactions dropped by the aging sweep",
            registry=self.registry,
        )

        self.transactions_pending = Gauge(
            "transaction_time_pending",
            "Transactions waiting for their second event",
            registry=self.registry,
        )

        self.transaction_time = Histogram(
            "transaction_time_seconds",
            "Elapsed time between the two events of a transaction",
            buckets=TRANSACTION_TIME_BUCKETS,
            registry=self.registry,
        )

        self.process_memory_bytes = Gauge(
            "process_resident_memory_bytes",
            "Resident memory size in bytes",
            ["service"],
            registry=self.registry,
        )
        self.update_system_metrics()

    def update_system_metrics(self):
        """Update process metrics from psutil."""
        try:
            memory_info = psutil.Process(os.getpid()).memory_info()
        except psutil.Error as e:
            log.warning("metrics.process_unavailable", error=str(e))
            return
        self.process_memory_bytes.labels(service=self.service_name).set(memory_info.rss)

    def record_event(self, outcome: str):
        """Record one event passing through the filter (skipped, pending or completed)."""
        self.events_received_total.labels(outcome=outcome).inc()

    def record_completed(self, diff: Any):
        """Observe the diff of a completed transaction when it is a duration."""
        if isinstance(diff, timedelta):
            self.transaction_time.observe(diff.total_seconds())
        elif isinstance(diff, (int, float)) and not isinstance(diff, bool):
            self.transaction_time.observe(diff)

    def record_expired(self, count: int):
        if count:
            self.transactions_expired_total.inc(count)

    def set_pending(self, count: int):
        self.transactions_pending.set(count)
