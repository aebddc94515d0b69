import asyncio
import logging

import pytest

from podreel.tracking import CorrelationTracker


@pytest.mark.asyncio
async def test_duplicate_completion_resolves_waiter_once():
    tracker = CorrelationTracker()
    future = tracker.wait_for_all(["a"])

    tracker.mark_completed("a")
    tracker.mark_completed("a")

    assert future.done()
    assert future.result() is None
    assert tracker.pending_registrations == 0
    assert tracker.is_completed("a")


@pytest.mark.asyncio
async def test_wait_after_completion_is_already_resolved():
    tracker = CorrelationTracker()
    tracker.mark_completed("a")
    tracker.mark_completed("b")

    future = tracker.wait_for_all(["a", "b"])

    assert future.done()
    assert tracker.pending_registrations == 0


@pytest.mark.asyncio
async def test_waiter_resolves_only_when_every_id_completes():
    tracker = CorrelationTracker()
    future = tracker.wait_for_all(["a", "b"])

    tracker.mark_completed("b")
    assert not future.done()

    tracker.mark_completed("a")
    await asyncio.wait_for(future, timeout=1)
    assert tracker.pending_registrations == 0


@pytest.mark.asyncio
async def test_one_completion_fans_out_to_overlapping_waiters():
    tracker = CorrelationTracker()
    only_a = tracker.wait_for_all(["a"])
    a_and_b = tracker.wait_for_all(["a", "b"])
    only_c = tracker.wait_for_all(["c"])

    tracker.mark_completed("a")

    assert only_a.done()
    assert not a_and_b.done()
    assert not only_c.done()
    assert tracker.pending_registrations == 2

    tracker.mark_completed("b")
    assert a_and_b.done()
    assert tracker.pending_registrations == 1


@pytest.mark.asyncio
async def test_completion_for_unknown_id_is_remembered():
    tracker = CorrelationTracker()
    tracker.mark_completed("late-waiter")

    assert tracker.is_completed("late-waiter")
    assert tracker.wait_for_all(["late-waiter"]).done()


@pytest.mark.asyncio
async def test_cancelled_waiter_is_dropped_without_error():
    tracker = CorrelationTracker()
    future = tracker.wait_for_all(["a"])
    future.cancel()

    tracker.mark_completed("a")

    assert future.cancelled()
    assert tracker.pending_registrations == 0


@pytest.mark.asyncio
async def test_timed_out_wait_does_not_break_later_completions():
    tracker = CorrelationTracker()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(tracker.wait_for_all(["a"]), timeout=0.01)

    second = tracker.wait_for_all(["a"])
    tracker.mark_completed("a")
    assert second.done()


@pytest.mark.asyncio
async def test_empty_wait_is_rejected():
    tracker = CorrelationTracker()
    with pytest.raises(ValueError):
        tracker.wait_for_all([])


def test_total_progress_is_mean_with_unknown_ids_as_zero():
    tracker = CorrelationTracker()
    tracker.set_progress("a", 50)
    tracker.set_progress("b", 100)

    assert tracker.calculate_total_progress(["a", "b"]) == 75
    assert tracker.calculate_total_progress(["a", "b", "c", "d"]) == 37.5
    assert tracker.calculate_total_progress([]) == 0


def test_progress_is_clamped_and_unknown_ids_warn(caplog):
    tracker = CorrelationTracker()
    with caplog.at_level(logging.WARNING, logger="tracker"):
        tracker.set_progress("x", 140)

    assert tracker.get_progress("x") == 100
    assert "unknown job id" in caplog.text

    tracker.set_progress("x", -5)
    assert tracker.get_progress("x") == 0


def test_completion_sets_progress_to_full():
    tracker = CorrelationTracker()
    tracker.set_progress("a", 30)
    tracker.mark_completed("a")
    assert tracker.get_progress("a") == 100


@pytest.mark.asyncio
async def test_partial_completion_logs_total_progress(caplog):
    tracker = CorrelationTracker()
    waiter = tracker.wait_for_all(["a", "b"])
    with caplog.at_level(logging.DEBUG, logger="tracker"):
        tracker.mark_completed("a")
    assert not waiter.done()
    assert "Total progress for a, b: 50.0%" in caplog.text
