"""
Thread-safe correlation store pairing events by uid
"""

import threading
from typing import Any, Dict, Hashable, List, Optional
import structlog

from .models import Transaction
from ..event_models import Event

log = structlog.get_logger()


class CorrelationStore:
    """
    In-memory mapping of uid to pending transaction.

    The first event recorded for a uid creates a pending transaction, the
    second completes it and frees the slot. Every read and write of the
    mapping, including the aging sweep, runs under a single lock so that a
    pair can only ever be completed once.
    """

    def __init__(self):
        self._transactions: Dict[Hashable, Transaction] = {}
        self._lock = threading.Lock()

    def record(
        self,
        uid: Hashable,
        timestamp: Any,
        event: Optional[Event] = None,
        store_event: bool = False,
    ) -> Optional[Transaction]:
        """
        Record one half of a transaction

        Args:
            uid: Correlation key
            timestamp: Comparable, subtractable timestamp of the event
            event: The event itself, retained only if store_event is set
            store_event: Whether to keep a reference to the event

        Returns:
            The completed transaction if this call paired it, None otherwise

        Raises:
            InvalidTimestampError: If the pair's timestamps are not comparable.
                The slot is freed either way.
        """
        with self._lock:
            transaction = self._transactions.pop(uid, None)

            if transaction is None:
                self._transactions[uid] = Transaction.start(uid, timestamp, event, store_event)
                log.debug("transaction.started", uid=uid, pending=len(self._transactions))
                return None

            transaction.complete(timestamp, event, store_event)

        log.debug("transaction.paired", uid=uid, diff=transaction.diff)
        return transaction

    def tick(self, elapsed: float, timeout: float) -> List[Transaction]:
        """
        Age every pending transaction and evict the expired ones

        Args:
            elapsed: Time passed since the previous tick
            timeout: Age at which a pending transaction is dropped

        Returns:
            The evicted transactions. They are half pairs and never produce output.
        """
        with self._lock:
            for transaction in self._transactions.values():
                transaction.age += elapsed

            expired_uids = [
                uid for uid, transaction in self._transactions.items()
                if transaction.age >= timeout
            ]
            expired = [self._transactions.pop(uid) for uid in expired_uids]
            remaining = len(self._transactions)

        if expired:
            log.debug("transaction.expired", count=len(expired), pending=remaining)
        return expired

    def pending(self) -> List[Transaction]:
        """Snapshot copies of the pending transactions"""
        with self._lock:
            return [transaction.model_copy() for transaction in self._transactions.values()]

    def clear(self) -> None:
        """Drop all pending transactions"""
        with self._lock:
            dropped = len(self._transactions)
            self._transactions.clear()
        log.info("correlation_store.cleared", dropped=dropped)

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions)

    def __contains__(self, uid: Hashable) -> bool:
        with self._lock:
            return uid in self._transactions
