import asyncio

import pytest

from app.services.timer.countdown import Countdown
from fakes import run


def test_ticks_down_then_completes_once():
    ticks, done = [], []

    async def go():
        cd = Countdown(3, on_tick=ticks.append, on_complete=lambda: done.append(True), interval=0.005)
        cd.start()
        await cd.wait()
        return cd

    cd = run(go())
    assert ticks == [2, 1, 0]
    assert done == [True]
    assert cd.completed and not cd.cancelled


def test_cancel_before_expiry_never_completes():
    done = []

    async def go():
        cd = Countdown(5, on_complete=lambda: done.append(True), interval=0.01)
        cd.start()
        await asyncio.sleep(0.025)
        cd.cancel()
        await asyncio.sleep(0.1)
        return cd

    cd = run(go())
    assert done == []
    assert cd.cancelled and not cd.completed
    assert cd.remaining > 0


def test_cancel_at_tenth_tick_of_a_minute_keeps_remaining():
    ticks, done = [], []

    async def go():
        cd = Countdown(60, on_complete=lambda: done.append(True), interval=0.001)

        def on_tick(remaining):
            ticks.append(remaining)
            if len(ticks) == 10:
                cd.cancel()

        cd.on_tick = on_tick
        cd.start()
        await cd.wait()
        await asyncio.sleep(0.05)
        return cd

    cd = run(go())
    assert ticks == list(range(59, 49, -1))
    assert cd.remaining == 50
    assert done == [] and cd.cancelled and not cd.completed


def test_zero_seconds_completes_without_ticks():
    ticks, done = [], []

    async def go():
        cd = Countdown(0, on_tick=ticks.append, on_complete=lambda: done.append(True))
        cd.start()
        await cd.wait()

    run(go())
    assert ticks == [] and done == [True]


def test_failing_tick_callback_does_not_stop_the_clock():
    done = []

    def bad_tick(remaining):
        raise RuntimeError("boom")

    async def go():
        cd = Countdown(2, on_tick=bad_tick, on_complete=lambda: done.append(True), interval=0.005)
        cd.start()
        await cd.wait()

    run(go())
    assert done == [True]


def test_cannot_start_twice():
    async def go():
        cd = Countdown(1, interval=0.005)
        cd.start()
        with pytest.raises(RuntimeError):
            cd.start()
        cd.cancel()

    run(go())


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        Countdown(-1)
