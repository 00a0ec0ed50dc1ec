"""Process-wide transaction time filter and its flush scheduler."""
import structlog
from ..config import get_settings
from ..correlation import TransactionTimeFilter
from ..metrics import Metrics
from .scheduler import FlushScheduler

log = structlog.get_logger()
settings = get_settings()

# Global metrics instance shared with the HTTP middleware
metrics = Metrics(service_name="transaction-time", version="0.1.0")


def create_filter(metrics: Metrics | None = None) -> TransactionTimeFilter:
    """
    Create a filter from the service settings.

    Raises:
        pydantic.ValidationError: If the correlation settings are invalid
    """
    return TransactionTimeFilter(settings.correlation_config(), metrics=metrics)


# Global filter and scheduler instances
transaction_filter = create_filter(metrics)
scheduler = FlushScheduler(transaction_filter.flush, settings.FLUSH_INTERVAL)
