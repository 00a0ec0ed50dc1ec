"""
Transaction correlation

Pairs the two events of a transaction by uid and measures the time between them:
- Thread-safe store of pending transactions
- Aging sweep dropping transactions that never complete
- Result event construction
"""

from .store import CorrelationStore
from .filter import TransactionTimeFilter
from .builder import build_result
from .models import (
    CorrelationConfig,
    EventSelection,
    TimestampPolicy,
    Transaction,
    TRANSACTION_TIME_TAG,
)

__all__ = [
    "CorrelationStore",
    "TransactionTimeFilter",
    "build_result",
    "CorrelationConfig",
    "EventSelection",
    "TimestampPolicy",
    "Transaction",
    "TRANSACTION_TIME_TAG",
]
