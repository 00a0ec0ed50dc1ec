"""Transaction time filter: eligibility, correlation and result emission."""
import socket
import structlog
from typing import Any, Hashable, Tuple
from .builder import build_result
from .models import CorrelationConfig, EventSelection, TRANSACTION_TIME_TAG
from .store import CorrelationStore
from ..event_models import Event
from ..metrics import Metrics

log = structlog.get_logger()

OUTCOME_SKIPPED = "skipped"
OUTCOME_PENDING = "pending"
OUTCOME_COMPLETED = "completed"


class TransactionTimeFilter:
    """
    Measures the time between the two events of a transaction.

    Events sharing a value in `uid_field` are paired regardless of the order
    they arrive in. The second event of a pair produces a result event tagged
    `TransactionTime`; a first event that is not paired within `timeout`
    is dropped by `flush`.
    """

    def __init__(
        self,
        config: CorrelationConfig,
        store: CorrelationStore | None = None,
        hostname: str | None = None,
        metrics: Metrics | None = None,
    ):
        """
        Initialize the filter.

        Args:
            config: Correlation options
            store: Store holding pending transactions (defaults to a new one)
            hostname: Value of the result's host field (defaults to this host)
            metrics: Optional Prometheus metrics to update
        """
        self.config = config
        self.store = store if store is not None else CorrelationStore()
        self.hostname = hostname or socket.gethostname()
        self.metrics = metrics

        if config.decorate_event != EventSelection.NONE:
            log.warning(
                "filter.decorate_event_unsupported",
                decorate_event=config.decorate_event.value,
            )

        log.info(
            "filter.configured",
            uid_field=config.uid_field,
            timeout=config.timeout,
            timestamp_tag=config.timestamp_tag,
            attach_event=config.attach_event.value,
            replace_timestamp=config.replace_timestamp.value,
            filter_tag=config.filter_tag,
        )

    @property
    def pending_count(self) -> int:
        return len(self.store)

    def extract_uid(self, event: Event) -> Hashable | None:
        return _as_key(event.get(self.config.uid_field))

    def is_eligible(self, event: Event) -> bool:
        """
        Check whether an event takes part in correlation.

        Results of this filter are never correlated again, and when a
        `filter_tag` is configured only events carrying it are.
        """
        if self.extract_uid(event) is None:
            return False
        if event.has_tag(TRANSACTION_TIME_TAG):
            return False
        if self.config.filter_tag is not None and not event.has_tag(self.config.filter_tag):
            return False
        return True

    def filter(self, event: Event) -> Event | None:
        """
        Correlate one event.

        Args:
            event: Inbound event

        Returns:
            The result event if this event completed a transaction, None otherwise

        Raises:
            InvalidTimestampError: If the paired timestamps are not comparable
        """
        _, result = self.process(event)
        return result

    def process(self, event: Event) -> Tuple[str, Event | None]:
        """
        Correlate one event and report what happened to it.

        Returns:
            Tuple of outcome (skipped, pending or completed) and the result
            event, which is only set for completed transactions

        Raises:
            InvalidTimestampError: If the paired timestamps are not comparable
        """
        if not self.is_eligible(event):
            self._record_outcome(OUTCOME_SKIPPED)
            return OUTCOME_SKIPPED, None

        uid = self.extract_uid(event)
        timestamp: Any = event.get(self.config.timestamp_tag)
        log.debug("filter.received", uid=uid, event_id=event.id)

        transaction = self.store.record(uid, timestamp, event, self.config.store_event)
        if transaction is None:
            self._record_outcome(OUTCOME_PENDING)
            return OUTCOME_PENDING, None

        result = build_result(
            transaction,
            self.config.attach_event,
            self.config.replace_timestamp,
            self.hostname,
        )
        self._record_outcome(OUTCOME_COMPLETED)
        if self.metrics is not None:
            self.metrics.record_completed(transaction.diff)

        log.info(
            "transaction.completed",
            uid=uid,
            transaction_time=str(transaction.diff),
            valid=transaction.is_valid,
        )
        return OUTCOME_COMPLETED, result

    def flush(self, elapsed: float | None = None) -> int:
        """
        Age pending transactions and drop the expired ones.

        Args:
            elapsed: Seconds since the last flush (defaults to flush_interval)

        Returns:
            Number of transactions dropped
        """
        if elapsed is None:
            elapsed = self.config.flush_interval

        expired = self.store.tick(elapsed, self.config.timeout)
        pending = len(self.store)

        if self.metrics is not None:
            self.metrics.record_expired(len(expired))
            self.metrics.set_pending(pending)

        log.debug("flush.completed", elapsed=elapsed, expired=len(expired), pending=pending)
        return len(expired)

    def _record_outcome(self, outcome: str):
        if self.metrics is None:
            return
        self.metrics.record_event(outcome)
        if outcome != OUTCOME_SKIPPED:
            self.metrics.set_pending(len(self.store))


def _as_key(value: Any) -> Hashable | None:
    """
    Turn a uid value into something that can key the store.

    Arrays become tuples and objects become key-sorted tuples of pairs, so
    equal JSON values give equal keys regardless of key order.
    """
    if isinstance(value, (list, tuple)):
        return tuple(_as_key(item) for item in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), _as_key(v)) for k, v in value.items()))
    return value
