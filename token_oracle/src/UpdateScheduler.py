"""UpdateScheduler: Time-driven price and daily job streams with bounded retry.

Two independent loops run as asyncio tasks in one process:

- price loop: runs the price job, then sleeps a fixed ``price_update_frequency``
  regardless of how long the job took
- daily loop: waits until the next fixed wall-clock offset (UTC) and runs the
  daily job

Each trigger runs its job through an explicit bounded retry loop. A failing
attempt is retried up to ``max_retries`` times with a fixed ``retry_delay``
between attempts; once retries are exhausted the failure is logged and the job
goes back to idle until its next natural trigger.

Job states::

    IDLE -> RUNNING -> SUCCEEDED -> IDLE
                    -> FAILED -> RETRYING -> RUNNING
                              -> GIVING_UP -> IDLE
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY = 15 * 60  # 15 minutes
PRICE_UPDATE_FREQUENCY = 720 * 60  # 12 hours
DAILY_OFFSET = timedelta(minutes=5)  # 00:05 UTC


class JobState(str, Enum):
    """Lifecycle of a scheduled job."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RETRYING = "retrying"
    GIVING_UP = "giving_up"


@dataclass
class JobStats:
    """Counters for one job stream.

    :ivar runs: Triggers that ended in success.
    :ivar attempts: Total attempts, retries included.
    :ivar failures: Failed attempts.
    :ivar give_ups: Triggers abandoned after exhausting retries.
    :ivar last_error: String form of the most recent failure.
    """

    runs: int = 0
    attempts: int = 0
    failures: int = 0
    give_ups: int = 0
    last_error: str | None = None


def seconds_until_daily(offset: timedelta, now: datetime) -> float:
    """Seconds from ``now`` until the next occurrence of a daily UTC offset.

    :param offset: Offset from midnight UTC.
    :param now: Current aware datetime.
    :returns: Seconds to wait, always positive.

    .. code-block:: python

        >>> now = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        >>> seconds_until_daily(timedelta(minutes=5), now)
        300.0
    """
    midnight = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    target = midnight + offset
    while target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class ScheduledJob:
    """A named async job run with bounded retry.

    :ivar name: Name used in logs.
    :ivar body: Coroutine function doing the work.
    :ivar state: Current JobState.
    :ivar stats: Run counters.
    """

    def __init__(
        self,
        name: str,
        body: Callable[[], Awaitable[object]],
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ) -> None:
        """Initialize the job.

        :param name: Job name for logging.
        :param body: Coroutine function to run on each attempt.
        :param max_retries: Retries after the first failed attempt (default: 3).
        :param retry_delay: Seconds between attempts (default: 900).
        """
        self.name = name
        self.body = body
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.state = JobState.IDLE
        self.stats = JobStats()

    def _transition(self, state: JobState) -> None:
        logger.debug(f"[{self.name}] {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, sleep: Callable[[float], Awaitable[bool]]) -> bool:
        """Run the job for one trigger.

        :param sleep: Interruptible sleep; returns True if the scheduler is
            stopping, in which case pending retries are abandoned.
        :returns: True if an attempt succeeded.
        """
        retry = 0
        while True:
            self._transition(JobState.RUNNING)
            self.stats.attempts += 1
            started = time.monotonic()
            try:
                await self.body()
            except Exception as e:
                self._transition(JobState.FAILED)
                self.stats.failures += 1
                self.stats.last_error = str(e) or type(e).__name__
                logger.error(f"[{self.name}] Failed: {self.stats.last_error}")
                logger.debug(f"[{self.name}] Failure details", exc_info=True)
            else:
                self._transition(JobState.SUCCEEDED)
                self.stats.runs += 1
                logger.info(f"[{self.name}] Completed in {time.monotonic() - started:.1f}s")
                self._transition(JobState.IDLE)
                return True

            if retry >= self.max_retries:
                self._transition(JobState.GIVING_UP)
                self.stats.give_ups += 1
                logger.error(f"[{self.name}] Max retries reached, waiting for next trigger")
                self._transition(JobState.IDLE)
                return False

            retry += 1
            self._transition(JobState.RETRYING)
            logger.warning(
                f"[{self.name}] Retrying in {self.retry_delay:.0f}s "
                f"(attempt {retry} of {self.max_retries})"
            )
            if await sleep(self.retry_delay):
                self._transition(JobState.IDLE)
                return False


class UpdateScheduler:
    """Runs the price loop and the daily loop until stopped.

    :ivar price_job: Job run every ``price_update_frequency`` seconds.
    :ivar daily_job: Job run once per day at ``daily_offset`` past midnight UTC.
    :ivar price_update_frequency: Seconds slept between price cycles.
    :ivar daily_offset: Offset of the daily trigger from midnight UTC.
    """

    def __init__(
        self,
        price_task: Callable[[], Awaitable[object]],
        daily_task: Callable[[], Awaitable[object]] | None = None,
        price_update_frequency: float = PRICE_UPDATE_FREQUENCY,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        daily_offset: timedelta = DAILY_OFFSET,
        sleep: Callable[[float], Awaitable[bool]] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the scheduler.

        :param price_task: Coroutine function for the price job.
        :param daily_task: Coroutine function for the daily job, or None.
        :param price_update_frequency: Seconds between price cycles (default: 12h).
        :param max_retries: Retries per trigger (default: 3).
        :param retry_delay: Seconds between retries (default: 15 min).
        :param daily_offset: Daily trigger offset from midnight UTC (default: 00:05).
        :param sleep: Override for the interruptible sleep (used in tests).
        :param now: Override for the current UTC time (used in tests).
        """
        self.price_job = ScheduledJob("Price Updater", price_task, max_retries, retry_delay)
        self.daily_job = (
            ScheduledJob("Manager", daily_task, max_retries, retry_delay)
            if daily_task is not None
            else None
        )
        self.price_update_frequency = price_update_frequency
        self.daily_offset = daily_offset
        self._stop_event = asyncio.Event()
        self._sleep = sleep or self._interruptible_sleep
        self._now = now or (lambda: datetime.now(timezone.utc))

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask both loops to exit at their next suspension point."""
        logger.info("Stopping scheduler")
        self._stop_event.set()

    async def _interruptible_sleep(self, seconds: float) -> bool:
        """Sleep unless the scheduler is stopped first.

        :param seconds: Seconds to sleep.
        :returns: True if the scheduler is stopping.
        """
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return self._stop_event.is_set()

    async def price_loop(self) -> None:
        """Run the price job forever at a fixed cadence."""
        logger.info(
            f"[{self.price_job.name}] Updating prices every {self.price_update_frequency:.0f}s"
        )
        while not self.stopping:
            await self.price_job.run(self._sleep)
            if await self._sleep(self.price_update_frequency):
                break

    async def daily_loop(self) -> None:
        """Run the daily job once per day at the configured offset."""
        if self.daily_job is None:
            raise RuntimeError("No daily task configured")
        while not self.stopping:
            delay = seconds_until_daily(self.daily_offset, self._now())
            logger.info(f"[{self.daily_job.name}] Next daily run in {delay:.0f}s")
            if await self._sleep(delay):
                break
            await self.daily_job.run(self._sleep)

    async def run(self) -> None:
        """Run all job streams until :meth:`stop` is called."""
        loops = [self.price_loop()]
        if self.daily_job is not None:
            loops.append(self.daily_loop())
        await asyncio.gather(*loops)
