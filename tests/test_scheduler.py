"""Tests for the periodic flush scheduler."""
import time
from unittest.mock import Mock
from transaction_time.services.scheduler import FlushScheduler


def test_scheduler_calls_flush_with_interval():
    flush = Mock(return_value=0)
    scheduler = FlushScheduler(flush, interval_seconds=0.05)

    scheduler.start()
    try:
        time.sleep(0.4)
    finally:
        scheduler.shutdown()

    assert flush.call_count >= 2
    flush.assert_called_with(0.05)


def test_scheduler_stops_on_shutdown():
    flush = Mock(return_value=0)
    scheduler = FlushScheduler(flush, interval_seconds=0.05)

    scheduler.start()
    time.sleep(0.2)
    scheduler.shutdown()
    calls = flush.call_count
    time.sleep(0.2)

    assert scheduler.running is False
    assert flush.call_count <= calls + 1


def test_start_is_idempotent():
    scheduler = FlushScheduler(Mock(return_value=0), interval_seconds=60)
    scheduler.start()
    first_timer = scheduler._timer
    scheduler.start()

    assert scheduler._timer is first_timer
    assert scheduler.running is True
    scheduler.shutdown()


def test_failed_flush_is_logged_not_raised():
    flush = Mock(side_effect=RuntimeError("boom"))
    scheduler = FlushScheduler(flush, interval_seconds=1)

    assert scheduler.run_once() == 0
    flush.assert_called_once_with(1)


def test_scheduler_keeps_running_after_failure():
    flush = Mock(side_effect=[RuntimeError("boom"), 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0])
    scheduler = FlushScheduler(flush, interval_seconds=0.05)

    scheduler.start()
    try:
        time.sleep(0.3)
    finally:
        scheduler.shutdown()

    assert flush.call_count >= 2
