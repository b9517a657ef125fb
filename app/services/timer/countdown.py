# app/services/timer/countdown.py
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

log = logging.getLogger("countdown")

TickCallback = Callable[[int], Any]
DoneCallback = Callable[[], Any]


async def _call(cb: Optional[Callable[..., Any]], *args: Any) -> None:
    if cb is None:
        return
    res = cb(*args)
    if inspect.isawaitable(res):
        await res


class Countdown:
    """
    Once-per-interval countdown driven by an asyncio task.

    ``on_tick(remaining)`` runs after every decrement, ``on_complete()`` runs
    once when ``remaining`` reaches zero. ``cancel()`` stops the task; after
    a cancel the completion callback is never invoked.

    Callbacks may be plain functions or coroutine functions.
    """

    def __init__(
        self,
        seconds: int,
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[DoneCallback] = None,
        interval: float = 1.0,
    ) -> None:
        if seconds < 0:
            raise ValueError("countdown duration must be >= 0")
        self.seconds = int(seconds)
        self.remaining = int(seconds)
        self.interval = interval
        self.on_tick = on_tick
        self.on_complete = on_complete
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self._completed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def completed(self) -> bool:
        return self._completed

    def start(self) -> asyncio.Task:
        if self._task is not None:
            raise RuntimeError("countdown already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Block until the countdown finishes or is cancelled."""
        if self._task is None:
            return
        await asyncio.wait({self._task})

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                return
            self.remaining -= 1
            try:
                await _call(self.on_tick, self.remaining)
            except Exception:
                log.exception("countdown tick callback failed")
        if self._cancelled:
            return
        self._completed = True
        try:
            await _call(self.on_complete)
        except Exception:
            log.exception("countdown completion callback failed")
