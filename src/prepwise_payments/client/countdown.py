"""Countdown timer — a cancellable once-per-second asyncio task."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress

from prepwise_payments.config import settings

logger = logging.getLogger(__name__)


def format_remaining(seconds: int) -> str:
    """Render seconds as ``m:ss`` (``300`` → ``5:00``)."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


class Countdown:
    """Counts down from ``duration`` to zero, one tick per ``interval``.

    The owner must call :meth:`cancel` when it goes away; the running task
    is the only thing keeping the callbacks alive.
    """

    def __init__(
        self,
        duration: int | None = None,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
        on_expire: Callable[[], None] | None = None,
    ) -> None:
        self.duration = duration if duration is not None else settings.otp_ttl_seconds
        self.interval = interval
        self.remaining = self.duration
        self.on_tick = on_tick
        self.on_expire = on_expire
        self._task: asyncio.Task | None = None

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking; a running countdown is left untouched."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    def tick(self) -> None:
        """Advance by one step and fire the callbacks."""
        if self.expired:
            return
        self.remaining -= 1
        if self.on_tick:
            self.on_tick(self.remaining)
        if self.expired:
            logger.debug("Countdown reached zero")
            if self.on_expire:
                self.on_expire()

    def reset(self) -> None:
        """Rewind to the full duration and restart."""
        self.cancel()
        self.remaining = self.duration
        self.start()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the running countdown to finish (or be cancelled)."""
        if self._task is not None:
            with suppress(asyncio.CancelledError):
                await self._task

    async def _run(self) -> None:
        while not self.expired:
            await asyncio.sleep(self.interval)
            self.tick()
