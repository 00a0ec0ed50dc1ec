"""Tests for the transaction time filter."""
import pytest
from datetime import datetime, timedelta
from prometheus_client import CollectorRegistry
from transaction_time.correlation import (
    TransactionTimeFilter,
    CorrelationConfig,
    CorrelationStore,
    TRANSACTION_TIME_TAG,
)
from transaction_time.event_models import Event
from transaction_time.exceptions import InvalidTimestampError
from transaction_time.metrics import Metrics


def _filter(**options) -> TransactionTimeFilter:
    options.setdefault("uid_field", "uid")
    return TransactionTimeFilter(CorrelationConfig(**options), hostname="test-host")


def _event(uid, ts, tags=None, **data) -> Event:
    if uid is not None:
        data["uid"] = uid
    return Event(timestamp=ts, tags=tags or [], data=data)


def test_pairing_emits_one_result():
    """Scenario: A at 100 then A at 130 gives a diff of 30 starting at 100."""
    txf = _filter()

    assert txf.filter(_event("A", 100)) is None
    assert txf.pending_count == 1

    result = txf.filter(_event("A", 130))

    assert result is not None
    assert result.get("transaction_time") == 30
    assert result.get("timestamp_start") == 100
    assert result.get("transaction_uid") == "A"
    assert result.get("host") == "test-host"
    assert result.has_tag(TRANSACTION_TIME_TAG)
    assert txf.pending_count == 0


def test_pairing_in_reverse_order():
    txf = _filter()
    txf.filter(_event("A", 130))
    result = txf.filter(_event("A", 100))
    assert result.get("transaction_time") == 30
    assert result.get("timestamp_start") == 100


def test_event_without_uid_is_skipped():
    txf = _filter()
    event = _event(None, 100)

    assert txf.is_eligible(event) is False
    assert txf.filter(event) is None
    assert txf.pending_count == 0


def test_result_events_are_not_correlated_again():
    txf = _filter()
    txf.filter(_event("A", 100))
    result = txf.filter(_event("A", 130))

    # Result carries the uid under transaction_uid, re-tag with uid to be sure
    result.set("uid", "A")
    assert txf.is_eligible(result) is False
    assert txf.filter(result) is None
    assert txf.pending_count == 0


def test_filter_tag_limits_eligible_events():
    txf = _filter(filter_tag="Transaction")

    assert txf.filter(_event("A", 100)) is None
    assert txf.pending_count == 0

    txf.filter(_event("A", 100, tags=["Transaction"]))
    result = txf.filter(_event("A", 105, tags=["Transaction", "other"]))
    assert result.get("transaction_time") == 5


def test_nested_uid_field():
    txf = _filter(uid_field="request.id")
    txf.filter(Event(timestamp=1, data={"request": {"id": "r-1"}}))
    result = txf.filter(Event(timestamp=4, data={"request": {"id": "r-1"}}))
    assert result.get("transaction_uid") == "r-1"
    assert result.get("transaction_time") == 3


def test_list_uid_is_usable_as_key():
    txf = _filter()
    txf.filter(_event(["a", "b"], 1))
    result = txf.filter(_event(["a", "b"], 2))
    assert result.get("transaction_uid") == ("a", "b")


def test_custom_timestamp_tag():
    txf = _filter(timestamp_tag="measured_at")
    txf.filter(_event("A", 0, measured_at=10.0))
    result = txf.filter(_event("A", 0, measured_at=12.5))
    assert result.get("transaction_time") == 2.5


def test_missing_timestamp_gives_invalid_result():
    txf = _filter(timestamp_tag="measured_at", replace_timestamp="oldest")
    txf.filter(_event("A", 0, measured_at=10.0))

    result = txf.filter(_event("A", 0))

    assert result.get("transaction_time") is None
    assert result.get("timestamp_start") is None
    assert txf.pending_count == 0


def test_datetime_timestamps():
    start = datetime(2025, 3, 1, 8, 0, 0)
    txf = _filter()
    txf.filter(_event("A", start))
    result = txf.filter(_event("A", start + timedelta(minutes=2)))
    assert result.get("transaction_time") == timedelta(minutes=2)


def test_incomparable_timestamps_raise_and_free_slot():
    txf = _filter(timestamp_tag="measured_at")
    txf.filter(_event("A", 0, measured_at=10.0))

    with pytest.raises(InvalidTimestampError):
        txf.filter(_event("A", 0, measured_at="ten"))

    assert txf.pending_count == 0


def test_attach_oldest_scenario():
    """X at 50 recorded first, Y at 20 second: oldest resolves to Y."""
    txf = _filter(attach_event="oldest")
    x = _event("T", 50, name="X")
    y = _event("T", 20, name="Y")

    txf.filter(x)
    result = txf.filter(y)

    assert result.id == y.id
    assert result.get("name") == "Y"
    assert result.get("transaction_time") == 30


def test_replace_timestamp_newest_scenario():
    txf = _filter(replace_timestamp="newest")
    txf.filter(_event("A", 10))
    result = txf.filter(_event("A", 5))
    assert result.timestamp == 10


def test_no_event_retained_without_attach():
    txf = _filter()
    txf.filter(_event("A", 1, payload="x" * 10_000))

    pending = txf.store.pending()
    assert pending[0].first_event is None


def test_events_retained_with_attach():
    txf = _filter(attach_event="first")
    event = _event("A", 1)
    txf.filter(event)
    assert txf.store.pending()[0].first_event is event


def test_flush_evicts_without_output():
    """Scenario: B at 0, timeout 300, flushed every 5 seconds."""
    txf = _filter(timeout=300, flush_interval=5)
    txf.filter(_event("B", 0))

    expired = [txf.flush() for _ in range(61)]

    assert sum(expired[:59]) == 0
    assert expired[59] == 1
    assert expired[60] == 0
    assert txf.pending_count == 0


def test_flush_with_explicit_elapsed():
    txf = _filter(timeout=10)
    txf.filter(_event("A", 0))

    assert txf.flush(9.5) == 0
    assert txf.flush(0.5) == 1

    # A late second half starts a new transaction instead of completing
    assert txf.filter(_event("A", 20)) is None
    assert txf.pending_count == 1


def test_shared_store():
    store = CorrelationStore()
    first = TransactionTimeFilter(CorrelationConfig(uid_field="uid"), store=store, hostname="a")
    second = TransactionTimeFilter(CorrelationConfig(uid_field="uid"), store=store, hostname="b")

    first.filter(_event("A", 1))
    result = second.filter(_event("A", 3))

    assert result.get("host") == "b"
    assert len(store) == 0


def test_default_hostname(monkeypatch):
    monkeypatch.setattr("transaction_time.correlation.filter.socket.gethostname", lambda: "box-1")
    txf = TransactionTimeFilter(CorrelationConfig(uid_field="uid"))
    assert txf.hostname == "box-1"


def test_metrics_updated():
    registry = CollectorRegistry()
    metrics = Metrics(registry=registry)
    txf = TransactionTimeFilter(CorrelationConfig(uid_field="uid", timeout=5), hostname="h", metrics=metrics)

    txf.filter(_event(None, 1))
    txf.filter(_event("A", 1))
    txf.filter(_event("A", 4))
    txf.filter(_event("B", 1))
    txf.flush(5)

    def sample(name, labels=None):
        return registry.get_sample_value(name, labels or {})

    assert sample("transaction_time_events_total", {"outcome": "skipped"}) == 1
    assert sample("transaction_time_events_total", {"outcome": "pending"}) == 2
    assert sample("transaction_time_events_total", {"outcome": "completed"}) == 1
    assert sample("transaction_time_expired_total") == 1
    assert sample("transaction_time_pending") == 0
    assert sample("transaction_time_seconds_count") == 1
    assert sample("transaction_time_seconds_sum") == 3


def test_mapping_uid_is_usable_as_key():
    """Object uids pair by value, independent of key order."""
    txf = _filter()

    assert txf.filter(Event(timestamp=1, data={"uid": {"order": 7, "site": "b"}})) is None
    result = txf.filter(Event(timestamp=6, data={"uid": {"site": "b", "order": 7}}))

    assert result is not None
    assert result.get("transaction_time") == 5
    assert txf.pending_count == 0


def test_nested_uid_values_are_usable_as_keys():
    txf = _filter()
    uid = ["a", {"parts": [1, 2], "meta": {"x": None}}]

    txf.filter(_event(uid, 1))
    result = txf.filter(_event(uid, 2))

    assert result.get("transaction_time") == 1


@pytest.mark.parametrize("events,expected", [
    ([_event(None, 1)], ["skipped"]),
    ([_event("P", 1)], ["pending"]),
    ([_event("P", 1), _event("P", 3)], ["pending", "completed"]),
])
def test_process_reports_outcome(events, expected):
    txf = _filter()

    outcomes = [txf.process(event) for event in events]

    assert [status for status, _ in outcomes] == expected
    assert (outcomes[-1][1] is not None) == (expected[-1] == "completed")
