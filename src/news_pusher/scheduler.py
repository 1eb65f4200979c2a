from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Optional

from .models import AggregatedFeed, PushReport, SchedulerState, SchedulerStatus, local_now
from .pipeline import NewsPipeline


class PushAlreadyRunningError(RuntimeError):
    def __init__(self, message: str = "Push already in progress"):
        super().__init__(message)


def next_daily_run(now: datetime, hour: int, minute: int) -> datetime:
    """Next ``hour:minute`` on the host's local wall clock strictly after ``now``.

    Each candidate day is resolved against the local zone on its own, so the
    UTC offset follows daylight-saving changes between ``now`` and the run.
    """
    current = now.astimezone()
    day = current.date()
    while True:
        candidate = datetime.combine(day, time(hour, minute)).astimezone()
        if candidate > current:
            return candidate
        day += timedelta(days=1)


class PushScheduler:
    """Runs the push pipeline once a day and on demand, never two runs at once."""

    def __init__(
        self,
        pipeline: NewsPipeline,
        daily_hour: int = 8,
        daily_minute: int = 0,
        clock: Callable[[], datetime] = local_now,
        logger: Optional[logging.Logger] = None,
    ):
        if not 0 <= daily_hour <= 23:
            raise ValueError("daily hour must be in [0, 23]")
        if not 0 <= daily_minute <= 59:
            raise ValueError("daily minute must be in [0, 59]")
        self.pipeline = pipeline
        self.daily_hour = daily_hour
        self.daily_minute = daily_minute
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.state = SchedulerState()
        self._guard = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def daily_at(self) -> str:
        return f"{self.daily_hour:02d}:{self.daily_minute:02d}"

    @contextmanager
    def _single_flight(self) -> Iterator[None]:
        if not self._guard.acquire(blocking=False):
            raise PushAlreadyRunningError()
        self.state.is_running = True
        try:
            yield
        finally:
            self.state.is_running = False
            self._guard.release()

    def _run(self, trigger: str) -> PushReport:
        with self._single_flight():
            report = self.pipeline.run_once(trigger=trigger)
            self.state.last_run_at = self.clock()
            return report

    def trigger_manual_push(self) -> PushReport:
        self.logger.info("manual push triggered")
        try:
            return self._run("manual")
        except PushAlreadyRunningError:
            self.logger.warning("manual push rejected: push already in progress")
            raise
        except Exception:
            self.logger.exception("push failed: trigger=manual")
            raise

    def run_scheduled(self) -> Optional[PushReport]:
        self.logger.info("scheduled push triggered: daily_at=%s", self.daily_at)
        try:
            return self._run("scheduled")
        except PushAlreadyRunningError:
            self.logger.warning("push already in progress, skipping scheduled run")
        except Exception:
            self.logger.exception("push failed: trigger=scheduled")
        return None

    def fetch_current_feed(self) -> AggregatedFeed:
        return self.pipeline.fetch_current_feed()

    def next_run_at(self) -> datetime:
        return next_daily_run(self.clock(), self.daily_hour, self.daily_minute)

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            is_running=self.state.is_running,
            last_run_at=self.state.last_run_at,
            next_run_at=self.next_run_at(),
            daily_at=self.daily_at,
        )

    def run_forever(self) -> None:
        self.logger.info("daily scheduler started: daily_at=%s", self.daily_at)
        while not self._stop_event.is_set():
            now = self.clock()
            next_run = next_daily_run(now, self.daily_hour, self.daily_minute)
            wait_seconds = max((next_run - now).total_seconds(), 0.0)
            self.logger.info(
                "next push at %s (in %.0f seconds)",
                next_run.strftime("%Y-%m-%d %H:%M:%S %Z"),
                wait_seconds,
            )
            if self._stop_event.wait(wait_seconds):
                break
            self.run_scheduled()
        self.logger.info("daily scheduler stopped")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name="push-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
