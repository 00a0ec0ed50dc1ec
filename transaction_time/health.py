"""
Health checks for liveness and readiness probes.
"""
from datetime import datetime, timezone
from typing import Dict, Any
import psutil
from .logging import get_logger

logger = get_logger()


class HealthChecker:
    """
    Health checker for the transaction time service.

    Readiness covers memory and disk headroom plus the size of the
    correlation store, which grows with events per timeout window.
    """

    def __init__(self, transaction_filter, service_name: str = "transaction-time",
                 version: str = "0.1.0", max_pending: int = 1_000_000):
        self.transaction_filter = transaction_filter
        self.service_name = service_name
        self.version = version
        self.max_pending = max_pending

    def _base(self) -> Dict[str, Any]:
        return {
            "service": self.service_name,
            "version": self.version,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    def liveness(self) -> Dict[str, Any]:
        return {"status": "ok", **self._base()}

    def readiness(self) -> Dict[str, Any]:
        """
        Readiness check.

        Returns:
            dict: "ready" unless a check reports an error, with per-check details
        """
        checks = {
            "correlation_store": self._check_store(),
            "disk_space": self._check_disk_space(),
            "memory": self._check_memory(),
        }
        ready = all(check["status"] != "error" for check in checks.values())
        return {"status": "ready" if ready else "not_ready", **self._base(), "checks": checks}

    def _check_store(self) -> Dict[str, Any]:
        pending = self.transaction_filter.pending_count
        if pending >= self.max_pending:
            status = "error"
        elif pending >= self.max_pending * 0.8:
            status = "warning"
        else:
            status = "ok"
        return {
            "status": status,
            "pending": pending,
            "timeout_seconds": self.transaction_filter.config.timeout,
        }

    def _check_disk_space(self, threshold_gb: float = 1.0) -> Dict[str, Any]:
        try:
            disk = psutil.disk_usage("/")
        except (psutil.Error, OSError) as e:
            logger.warning("disk_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

        available_gb = disk.free / (1024**3)
        if available_gb < threshold_gb:
            status = "error"
        elif available_gb < threshold_gb * 2:
            status = "warning"
        else:
            status = "ok"

        return {
            "status": status,
            "available_gb": round(available_gb, 2),
            "used_percent": disk.percent,
        }

    def _check_memory(self, threshold_mb: float = 50.0) -> Dict[str, Any]:
        try:
            memory = psutil.virtual_memory()
        except (psutil.Error, OSError) as e:
            logger.warning("memory_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

        available_mb = memory.available / (1024**2)
        if available_mb < threshold_mb:
            status = "error"
        elif available_mb < threshold_mb * 2:
            status = "warning"
        else:
            status = "ok"

        return {
            "status": status,
            "available_mb": round(available_mb, 2),
            "used_percent": memory.percent,
        }
