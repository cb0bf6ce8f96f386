"""Tests for periodic work scheduling."""

from __future__ import annotations

import threading
from datetime import timedelta
from unittest.mock import MagicMock

from headline_notifier.models import JobResult
from headline_notifier.network import NetworkMonitor
from headline_notifier.scheduler import (
    BackoffPolicy,
    Constraints,
    ExistingPeriodicWorkPolicy,
    PeriodicWorkRequest,
    Ticker,
    WorkScheduler,
    WorkState,
    compute_backoff,
)


def worker_returning(*results):
    worker = MagicMock()
    worker.do_work.side_effect = list(results)
    return worker


def make_request(worker, minutes=15, requires_network=False, **kwargs):
    return PeriodicWorkRequest(
        worker_factory=lambda: worker,
        repeat_interval=timedelta(minutes=minutes),
        constraints=Constraints(requires_network=requires_network),
        **kwargs,
    )


class TestRegistration:
    def test_keep_twice_leaves_first_schedule(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        first_worker = worker_returning(JobResult.SUCCESS)
        second_worker = worker_returning(JobResult.SUCCESS)

        first = scheduler.enqueue_unique_periodic_work(
            "NewsFetchWork", ExistingPeriodicWorkPolicy.KEEP, make_request(first_worker, minutes=15)
        )
        second = scheduler.enqueue_unique_periodic_work(
            "NewsFetchWork", ExistingPeriodicWorkPolicy.KEEP, make_request(second_worker, minutes=60)
        )

        assert second.id == first.id
        assert scheduler.get_work_info("NewsFetchWork").repeat_interval == timedelta(minutes=15)
        results = scheduler.run_pending()
        assert results == [("NewsFetchWork", JobResult.SUCCESS)]
        first_worker.do_work.assert_called_once()
        second_worker.do_work.assert_not_called()

    def test_replace_swaps_registration(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        first = scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker_returning())
        )
        replacement = worker_returning(JobResult.SUCCESS)

        second = scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.REPLACE, make_request(replacement, minutes=30)
        )

        assert second.id != first.id
        assert second.repeat_interval == timedelta(minutes=30)
        scheduler.run_pending()
        replacement.do_work.assert_called_once()

    def test_update_keeps_schedule_history(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker_returning(JobResult.SUCCESS))
        )
        scheduler.run_pending()
        before = scheduler.get_work_info("job")

        after = scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.UPDATE, make_request(worker_returning(), minutes=45)
        )

        assert after.id == before.id
        assert after.run_count == 1
        assert after.next_run_at == before.next_run_at
        assert after.repeat_interval == timedelta(minutes=45)

    def test_interval_is_clamped_to_minimum(self):
        request = make_request(worker_returning(), minutes=1)
        assert request.repeat_interval == timedelta(minutes=15)

    def test_cancel(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        scheduler.enqueue_unique_periodic_work("job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker_returning()))

        assert scheduler.cancel_unique_work("job") is True
        assert scheduler.get_work_info("job") is None
        assert scheduler.cancel_unique_work("job") is False
        assert scheduler.run_pending() == []


class TestRunPending:
    def test_success_waits_one_interval(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        worker = worker_returning(JobResult.SUCCESS, JobResult.SUCCESS)
        scheduler.enqueue_unique_periodic_work("job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker))

        assert len(scheduler.run_pending()) == 1
        fake_clock.advance(minutes=14)
        assert scheduler.run_pending() == []
        fake_clock.advance(minutes=1)
        assert len(scheduler.run_pending()) == 1

        info = scheduler.get_work_info("job")
        assert info.run_count == 2
        assert info.state is WorkState.ENQUEUED
        assert info.last_result is JobResult.SUCCESS

    def test_network_constraint_defers_run(self, fake_clock, fake_network):
        fake_network.connected = False
        scheduler = WorkScheduler(clock=fake_clock, network=fake_network)
        worker = worker_returning(JobResult.SUCCESS)
        scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker, requires_network=True)
        )

        assert scheduler.run_pending() == []
        worker.do_work.assert_not_called()

        fake_network.connected = True
        assert scheduler.run_pending() == [("job", JobResult.SUCCESS)]

    def test_retry_uses_exponential_backoff(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        worker = worker_returning(JobResult.RETRY, JobResult.RETRY, JobResult.SUCCESS)
        scheduler.enqueue_unique_periodic_work("job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker))
        start = fake_clock.now()

        scheduler.run_pending()
        info = scheduler.get_work_info("job")
        assert info.run_attempt_count == 1
        assert info.next_run_at == start + timedelta(seconds=30)

        fake_clock.advance(seconds=30)
        scheduler.run_pending()
        info = scheduler.get_work_info("job")
        assert info.run_attempt_count == 2
        assert info.next_run_at == fake_clock.now() + timedelta(seconds=60)

        fake_clock.advance(seconds=60)
        scheduler.run_pending()
        assert scheduler.get_work_info("job").run_attempt_count == 0

    def test_worker_exception_counts_as_retry(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        worker = MagicMock()
        worker.do_work.side_effect = RuntimeError("boom")
        scheduler.enqueue_unique_periodic_work("job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker))

        assert scheduler.run_pending() == [("job", JobResult.RETRY)]

    def test_run_forever_stops_on_event(self, fake_clock):
        scheduler = WorkScheduler(clock=fake_clock)
        worker = MagicMock()
        worker.do_work.return_value = JobResult.SUCCESS
        scheduler.enqueue_unique_periodic_work("job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker))
        stop_event = threading.Event()

        class CountingTicker(Ticker):
            def __init__(self):
                self.sleeps = 0

            def sleep(self, seconds):
                self.sleeps += 1
                fake_clock.advance(seconds=seconds)
                if self.sleeps == 31:
                    stop_event.set()

        ticker = CountingTicker()
        scheduler.run_forever(ticker=ticker, stop_event=stop_event, poll_seconds=60)

        assert ticker.sleeps == 31
        # Runs at t=0, 15, 30 minutes
        assert worker.do_work.call_count == 3


class TestComputeBackoff:
    def test_exponential(self):
        base = timedelta(seconds=30)
        assert compute_backoff(BackoffPolicy.EXPONENTIAL, base, 1) == timedelta(seconds=30)
        assert compute_backoff(BackoffPolicy.EXPONENTIAL, base, 3) == timedelta(seconds=120)

    def test_linear(self):
        assert compute_backoff(BackoffPolicy.LINEAR, timedelta(seconds=30), 3) == timedelta(seconds=90)

    def test_capped_at_five_hours(self):
        assert compute_backoff(BackoffPolicy.EXPONENTIAL, timedelta(seconds=30), 50) == timedelta(hours=5)


class GatedNetwork(NetworkMonitor):
    """Blocks connectivity checks made off the main thread until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def is_connected(self) -> bool:
        if threading.current_thread() is not threading.main_thread():
            self.entered.set()
            self.release.wait(timeout=5)
        return True


class TestConcurrentPasses:
    def test_overlapping_passes_run_work_once(self, fake_clock):
        network = GatedNetwork()
        scheduler = WorkScheduler(clock=fake_clock, network=network)
        worker = MagicMock()
        worker.do_work.return_value = JobResult.SUCCESS
        scheduler.enqueue_unique_periodic_work(
            "job", ExistingPeriodicWorkPolicy.KEEP, make_request(worker, requires_network=True)
        )
        background_results = []
        background = threading.Thread(target=lambda: background_results.extend(scheduler.run_pending()))

        background.start()
        assert network.entered.wait(timeout=5)
        assert scheduler.run_pending() == [("job", JobResult.SUCCESS)]
        network.release.set()
        background.join(timeout=5)

        assert background_results == []
        worker.do_work.assert_called_once()
        info = scheduler.get_work_info("job")
        assert info.run_count == 1
        assert info.next_run_at == fake_clock.now() + timedelta(minutes=15)
