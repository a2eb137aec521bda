"""Deferred materialization and the debounced/periodic maintenance task.

The host event loop is asyncio. When no loop is running, deferred work runs
inline and maintenance is driven cooperatively through ``MaintenanceTask.poll``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def running_loop() -> asyncio.AbstractEventLoop | None:
    """Return the running asyncio loop, or None outside of one."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def schedule(callback: Callable[[], None], mode: str, idle_delay: float = 0.0) -> bool:
    """Schedule ``callback`` for the given insertion mode.

    Returns True if the call was deferred to a later loop turn, False if the
    caller must run it now (``sync`` mode, or no running loop).
    """
    if mode == "sync":
        return False
    loop = running_loop()
    if loop is None:
        return False
    if mode == "idle":
        loop.call_later(idle_delay, callback)
    else:
        loop.call_soon(callback)
    return True


class MaintenanceTask:
    """Single-flight wrapper around a maintenance job.

    ``trigger`` requests a debounced run ``delay`` seconds from now; repeated
    triggers push the run back. The job also runs every ``interval`` seconds.
    A run requested while another is in progress is dropped.
    """

    def __init__(
        self,
        job: Callable[[], None],
        delay: float,
        interval: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self._job = job
        self.delay = delay
        self.interval = interval
        self._clock = clock
        self._running = False
        self._due_at: float | None = None
        self._last_run = clock()
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._periodic_handle: asyncio.TimerHandle | None = None
        self._periodic_loop: asyncio.AbstractEventLoop | None = None
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._due_at is not None or self._debounce_handle is not None

    def run(self) -> bool:
        """Run the job now unless a run is already in flight."""
        if self._running:
            logger.debug("Maintenance already running; skipped")
            return False
        self._running = True
        try:
            self._job()
        finally:
            self._running = False
            self._due_at = None
            self._debounce_handle = None
            self._last_run = self._clock()
            self.runs += 1
        return True

    def trigger(self) -> None:
        loop = running_loop()
        if loop is None:
            self._due_at = self._clock() + self.delay
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(self.delay, self.run)
        self._arm_periodic(loop)

    def poll(self) -> bool:
        """Run the job if a debounced or periodic run is due."""
        loop = running_loop()
        if loop is not None:
            self._arm_periodic(loop)
        now = self._clock()
        if self._due_at is not None and now >= self._due_at:
            return self.run()
        if now - self._last_run >= self.interval:
            return self.run()
        return False

    def _arm_periodic(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._periodic_handle is not None and self._periodic_loop is loop:
            return
        self._periodic_loop = loop
        self._periodic_handle = loop.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        loop = self._periodic_loop
        self._periodic_handle = None
        self.run()
        if loop is not None and not loop.is_closed():
            self._periodic_handle = loop.call_later(self.interval, self._tick)

    def cancel(self) -> None:
        for handle in (self._debounce_handle, self._periodic_handle):
            if handle is not None:
                handle.cancel()
        self._debounce_handle = None
        self._periodic_handle = None
        self._periodic_loop = None
        self._due_at = None
