"""
Fixed-interval background task with no overlapping ticks.

``ScheduledTask`` wraps an async callable and runs it once immediately on
``start()`` and then once per interval. The next tick is only scheduled after
the previous one has returned, so a slow tick delays the schedule instead of
running concurrently with the next one.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from argus_terminal.logging import get_logger

logger = get_logger(__name__, component="scheduling")

TickCallable = Callable[[], Awaitable[Any]]


@dataclass
class ScheduledTask:
    """
    Background loop driving ``tick`` every ``interval_seconds``.

    Usage:
        task = ScheduledTask("autopilot", engine.run_scan_cycle, interval_seconds=15)
        await task.start()
        # ... later ...
        await task.stop(wait=True)

    ``stop()`` never interrupts a tick that is already executing; it only
    cancels the wait between ticks. Pass ``wait=True`` to await the in-flight
    tick before returning.
    """

    name: str
    tick: TickCallable
    interval_seconds: float = 15.0

    # Internal state
    _running: bool = field(default=False, repr=False)
    _in_tick: bool = field(default=False, repr=False)
    _task: asyncio.Task[None] | None = field(default=None, repr=False)
    _generation: int = field(default=0, repr=False)
    _ticks: int = field(default=0, repr=False)
    _last_tick_at: float = field(default=0.0, repr=False)
    _last_error: BaseException | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {self.interval_seconds}")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    async def start(self) -> asyncio.Task[None]:
        """Start the loop; the first tick runs right away. Idempotent."""
        if self._running and self._task is not None:
            logger.debug("Scheduled task already running", task=self.name)
            return self._task

        previous = self._task if self._task is not None and not self._task.done() else None
        self._generation += 1
        self._running = True
        self._task = asyncio.create_task(self._loop(self._generation, previous))
        logger.info(
            "Scheduled task started", task=self.name, interval_seconds=self.interval_seconds
        )
        return self._task

    async def stop(self, wait: bool = False) -> None:
        """Stop scheduling further ticks, letting an in-flight tick complete."""
        if not self._running:
            if wait and self._task is not None:
                await self._drain(self._task)
            return

        self._running = False
        task = self._task
        if task is not None and not task.done() and not self._in_tick:
            task.cancel()
        if wait and task is not None:
            await self._drain(task)
        logger.info("Scheduled task stopped", task=self.name, ticks=self._ticks)

    async def restart(self, interval_seconds: float | None = None) -> None:
        if interval_seconds is not None:
            if interval_seconds <= 0:
                raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
            self.interval_seconds = interval_seconds
        # the new loop waits for any in-flight tick of the old one
        await self.stop()
        await self.start()

    @staticmethod
    async def _drain(task: asyncio.Task[None]) -> None:
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self, generation: int, previous: asyncio.Task[None] | None) -> None:
        if previous is not None:
            # a stopped loop may still be finishing its last tick
            await self._drain(previous)

        while self._running and self._generation == generation:
            await self._run_tick()
            if not (self._running and self._generation == generation):
                break
            await asyncio.sleep(self.interval_seconds)

    async def _run_tick(self) -> None:
        self._in_tick = True
        try:
            await self.tick()
            self._last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._last_error = exc
            logger.error("Scheduled tick failed", task=self.name, error=str(exc), exc_info=True)
        finally:
            self._in_tick = False
            self._ticks += 1
            self._last_tick_at = time.time()

    def get_status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "ticks": self._ticks,
            "in_tick": self._in_tick,
            "last_tick_at": self._last_tick_at or None,
            "last_error": str(self._last_error) if self._last_error else None,
        }


__all__ = ["ScheduledTask", "TickCallable"]
