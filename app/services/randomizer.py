# app/services/randomizer.py
from __future__ import annotations

import asyncio
import inspect
import random
from typing import Any, AsyncIterator, Callable, Optional, Sequence


class Randomizer:
    """
    Spin-the-wheel picker over a closed catalog.

    During the spin phase (``duration - settle`` seconds) a new candidate is
    shown every ``interval`` seconds, never the same as the one before it.
    Then the final pick is drawn uniformly from the catalog, shown, and after
    ``settle`` seconds handed to ``on_selected`` exactly once.
    """

    def __init__(
        self,
        items: Sequence[str],
        duration: float = 3.0,
        interval: float = 0.3,
        settle: float = 1.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not items:
            raise ValueError("randomizer needs a non-empty catalog")
        self.items = list(items)
        self.duration = duration
        self.interval = interval
        self.settle = min(settle, duration)
        self.rng = rng or random.Random()

    def _next_candidate(self, prev: Optional[str]) -> str:
        others = [i for i in self.items if i != prev]
        return self.rng.choice(others) if others else self.items[0]

    async def frames(self) -> AsyncIterator[str]:
        """Yield spin-phase candidates, then the final pick as the last frame."""
        spin_for = max(0.0, self.duration - self.settle)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + spin_for
        shown = self.items[0]
        yield shown
        while self.interval > 0 and loop.time() + self.interval <= deadline:
            await asyncio.sleep(self.interval)
            shown = self._next_candidate(shown)
            yield shown
        remaining = deadline - loop.time()
        if remaining > 0:
            await asyncio.sleep(remaining)
        yield self.rng.choice(self.items)

    async def spin(
        self,
        on_display: Optional[Callable[[str], Any]] = None,
        on_selected: Optional[Callable[[str], Any]] = None,
    ) -> str:
        final = None
        async for item in self.frames():
            final = item
            if on_display is not None:
                res = on_display(item)
                if inspect.isawaitable(res):
                    await res
        await asyncio.sleep(self.settle)
        if on_selected is not None:
            res = on_selected(final)
            if inspect.isawaitable(res):
                await res
        return final
