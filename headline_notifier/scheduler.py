"""Periodic job scheduling with unique names, constraints and retry backoff."""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from .models import JobResult
from .network import AlwaysConnected, NetworkMonitor

logger = logging.getLogger(__name__)

MIN_PERIODIC_INTERVAL = timedelta(minutes=15)
DEFAULT_BACKOFF_DELAY = timedelta(seconds=30)
MAX_BACKOFF_DELAY = timedelta(hours=5)


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class Ticker(ABC):
    """Waits between scheduler passes."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        pass


class SystemTicker(Ticker):
    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class Worker(ABC):
    """One unit of periodic work."""

    @abstractmethod
    def do_work(self) -> JobResult:
        """
        Run the work once.

        Returns:
            SUCCESS to wait for the next interval, RETRY to be re-attempted
            after the backoff delay.
        """
        pass


class ExistingPeriodicWorkPolicy(Enum):
    """What to do when work with the same unique name is already registered."""
    KEEP = "keep"
    REPLACE = "replace"
    UPDATE = "update"


class BackoffPolicy(Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


class WorkState(Enum):
    ENQUEUED = "enqueued"
    RUNNING = "running"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Constraints:
    """Preconditions that must hold before work runs."""
    requires_network: bool = False


@dataclass
class PeriodicWorkRequest:
    """A request to run a worker every ``repeat_interval``."""
    worker_factory: Callable[[], Worker]
    repeat_interval: timedelta
    constraints: Constraints = field(default_factory=Constraints)
    backoff_policy: BackoffPolicy = BackoffPolicy.EXPONENTIAL
    backoff_delay: timedelta = DEFAULT_BACKOFF_DELAY

    def __post_init__(self):
        if self.repeat_interval < MIN_PERIODIC_INTERVAL:
            logger.warning(
                f"Interval {self.repeat_interval} is below the minimum; using {MIN_PERIODIC_INTERVAL}"
            )
            self.repeat_interval = MIN_PERIODIC_INTERVAL


@dataclass
class WorkInfo:
    """Snapshot of one registered periodic job."""
    name: str
    id: str
    state: WorkState
    repeat_interval: timedelta
    constraints: Constraints
    next_run_at: datetime
    run_attempt_count: int = 0
    run_count: int = 0
    last_result: Optional[JobResult] = None


@dataclass
class _ScheduledWork:
    request: PeriodicWorkRequest
    info: WorkInfo


def _as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_due(next_run_at: datetime, now: datetime) -> bool:
    return _as_utc(now) >= _as_utc(next_run_at)


def compute_backoff(policy: BackoffPolicy, base_delay: timedelta, attempt: int) -> timedelta:
    """
    Delay before re-attempting work that asked for a retry.

    Args:
        policy: Exponential doubles the delay per attempt; linear adds it.
        base_delay: Delay for the first re-attempt.
        attempt: Number of consecutive retries so far (1 for the first).

    Returns:
        The delay, capped at MAX_BACKOFF_DELAY.
    """
    attempt = max(attempt, 1)
    if policy is BackoffPolicy.LINEAR:
        delay = base_delay * attempt
    else:
        # Cap the exponent; anything past 2**20 is far over the maximum anyway
        delay = base_delay * (2 ** min(attempt - 1, 20))
    return min(delay, MAX_BACKOFF_DELAY)


class WorkScheduler:
    """Runs uniquely named periodic work when due and its constraints hold.

    At most one registration exists per name, and at most one instance of a
    given name runs at a time.
    """

    def __init__(self, clock: Optional[Clock] = None, network: Optional[NetworkMonitor] = None):
        self.clock = clock or SystemClock()
        self.network = network or AlwaysConnected()
        self._works: Dict[str, _ScheduledWork] = {}
        self._running: Set[str] = set()
        self._lock = threading.Lock()

    def enqueue_unique_periodic_work(
        self,
        name: str,
        policy: ExistingPeriodicWorkPolicy,
        request: PeriodicWorkRequest,
    ) -> WorkInfo:
        """
        Register periodic work under a unique name.

        Args:
            name: Unique work name.
            policy: Conflict policy when the name is already registered.
            request: The work to run.

        Returns:
            Info for the registration that is in effect afterwards.
        """
        with self._lock:
            existing = self._works.get(name)

            if existing is not None and policy is ExistingPeriodicWorkPolicy.KEEP:
                logger.info(f"Periodic work '{name}' already scheduled; keeping existing schedule")
                return replace(existing.info)

            if existing is not None and policy is ExistingPeriodicWorkPolicy.UPDATE:
                existing.request = request
                existing.info.repeat_interval = request.repeat_interval
                existing.info.constraints = request.constraints
                logger.info(f"Updated periodic work '{name}' (every {request.repeat_interval})")
                return replace(existing.info)

            if existing is not None:
                existing.info.state = WorkState.CANCELLED
                logger.info(f"Replacing periodic work '{name}'")

            info = WorkInfo(
                name=name,
                id=str(uuid.uuid4()),
                state=WorkState.ENQUEUED,
                repeat_interval=request.repeat_interval,
                constraints=request.constraints,
                next_run_at=self.clock.now(),
            )
            self._works[name] = _ScheduledWork(request=request, info=info)

        logger.info(
            f"Scheduled periodic work '{name}' every {request.repeat_interval} "
            f"(requires_network={request.constraints.requires_network})"
        )
        return replace(info)

    def get_work_info(self, name: str) -> Optional[WorkInfo]:
        with self._lock:
            work = self._works.get(name)
            return replace(work.info) if work else None

    def cancel_unique_work(self, name: str) -> bool:
        """Remove a registration. Returns False if nothing was registered."""
        with self._lock:
            work = self._works.pop(name, None)
            if work is None:
                return False
            work.info.state = WorkState.CANCELLED
        logger.info(f"Cancelled periodic work '{name}'")
        return True

    def _constraints_met(self, constraints: Constraints) -> bool:
        if constraints.requires_network and not self.network.is_connected():
            return False
        return True

    def run_pending(self) -> List[Tuple[str, JobResult]]:
        """
        Run every registered job that is due and whose constraints hold.

        Returns:
            (name, result) for each job that ran in this pass.
        """
        now = self.clock.now()
        with self._lock:
            due = [
                (name, work) for name, work in self._works.items()
                if name not in self._running and is_due(work.info.next_run_at, now)
            ]

        results = []
        for name, work in due:
            if not self._constraints_met(work.request.constraints):
                logger.info(f"Constraints not met for '{name}'; deferring")
                continue

            with self._lock:
                # Another pass may have run this work since the snapshot
                if (
                    name in self._running
                    or self._works.get(name) is not work
                    or not is_due(work.info.next_run_at, self.clock.now())
                ):
                    continue
                self._running.add(name)
                work.info.state = WorkState.RUNNING

            result = JobResult.RETRY
            try:
                result = self._run_worker(name, work.request)
            finally:
                with self._lock:
                    self._record_result(work, result)
                    self._running.discard(name)

            logger.info(
                f"Periodic work '{name}' finished with {result.value}; "
                f"next run at {work.info.next_run_at.isoformat()}"
            )
            results.append((name, result))

        return results

    def _run_worker(self, name: str, request: PeriodicWorkRequest) -> JobResult:
        logger.info(f"Running periodic work '{name}'")
        try:
            return request.worker_factory().do_work()
        except Exception as e:
            logger.error(f"Periodic work '{name}' raised: {e}", exc_info=True)
            return JobResult.RETRY

    def _record_result(self, work: _ScheduledWork, result: JobResult) -> None:
        """Update run history and the next run time. Caller holds the lock."""
        info = work.info
        info.last_result = result
        info.run_count += 1
        if info.state is WorkState.CANCELLED:
            # Cancelled or replaced while running
            return
        info.state = WorkState.ENQUEUED
        if result is JobResult.RETRY:
            info.run_attempt_count += 1
            delay = compute_backoff(
                work.request.backoff_policy, work.request.backoff_delay, info.run_attempt_count
            )
        else:
            info.run_attempt_count = 0
            delay = work.request.repeat_interval
        info.next_run_at = _as_utc(self.clock.now()) + delay

    def run_forever(
        self,
        ticker: Optional[Ticker] = None,
        stop_event: Optional[threading.Event] = None,
        poll_seconds: float = 60,
    ) -> None:
        """Run pending work every ``poll_seconds`` until ``stop_event`` is set."""
        ticker = ticker or SystemTicker()
        stop_event = stop_event or threading.Event()
        logger.info("Scheduler loop started")
        while not stop_event.is_set():
            self.run_pending()
            if stop_event.is_set():
                break
            ticker.sleep(poll_seconds)
        logger.info("Scheduler loop stopped")
