"""Builds the result event of a completed transaction."""
import structlog
from .models import Transaction, EventSelection, TimestampPolicy, TRANSACTION_TIME_TAG
from ..event_models import Event, TIMESTAMP_FIELD

log = structlog.get_logger()

HOST_FIELD = "host"
TRANSACTION_TIME_FIELD = "transaction_time"
TRANSACTION_UID_FIELD = "transaction_uid"
TIMESTAMP_START_FIELD = "timestamp_start"


def select_carrier(transaction: Transaction, attach_mode: EventSelection) -> Event:
    """
    Pick the event that carries the result.

    The selected event is copied so the retained reference is released with
    the transaction. A fresh event is used when nothing is attached or the
    selected event was not retained.
    """
    if attach_mode == EventSelection.FIRST:
        selected = transaction.first_event
    elif attach_mode == EventSelection.LAST:
        selected = transaction.last_event
    elif attach_mode == EventSelection.OLDEST:
        selected = transaction.oldest_event
    elif attach_mode == EventSelection.NEWEST:
        selected = transaction.newest_event
    else:
        return Event()

    if selected is None:
        log.debug("result.carrier_missing", uid=transaction.uid, attach_event=attach_mode.value)
        return Event()
    return selected.model_copy(deep=True)


def build_result(
    transaction: Transaction,
    attach_mode: EventSelection,
    replace_timestamp: TimestampPolicy,
    hostname: str,
) -> Event:
    """
    Create the result event for a completed transaction.

    Args:
        transaction: Transaction holding both halves
        attach_mode: Which recorded event carries the result
        replace_timestamp: Policy for the result's primary timestamp
        hostname: Value written to the host field

    Returns:
        Event tagged TransactionTime with the diff, uid and start timestamp set
    """
    result = select_carrier(transaction, EventSelection(attach_mode))

    result.set(HOST_FIELD, hostname)
    result.tag(TRANSACTION_TIME_TAG)
    result.set(TRANSACTION_TIME_FIELD, transaction.diff)
    result.set(TRANSACTION_UID_FIELD, transaction.uid)
    result.set(TIMESTAMP_START_FIELD, transaction.oldest_timestamp)

    policy = TimestampPolicy(replace_timestamp)
    if policy == TimestampPolicy.OLDEST:
        replacement = transaction.oldest_timestamp
    elif policy == TimestampPolicy.NEWEST:
        replacement = transaction.newest_timestamp
    else:
        replacement = None

    # An invalid transaction keeps the carrier's own timestamp
    if replacement is not None:
        result.set(TIMESTAMP_FIELD, replacement)

    return result
