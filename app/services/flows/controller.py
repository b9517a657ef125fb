# app/services/flows/controller.py
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional, Union

from app.core.config import settings
from app.core.errors import AssessmentError, GenerationFailed, InvalidTransition
from app.services.capture.speech_capture import StreamedAudioDevice
from app.services.flows import book, topic
from app.services.flows.events import INTERNAL_EVENTS, EventType, FlowEvent, FlowKind
from app.services.timer.countdown import Countdown

log = logging.getLogger("flows")

FlowState = Union[topic.TopicState, book.BookState]
Call = Callable[[], Awaitable[FlowEvent]]


class FlowController:
    """
    Owns one user's run through a flow.

    * applies events through the flow's pure ``transition``
    * on entering a ``generating_*`` step starts exactly one external call as
      an asyncio task; its outcome comes back as ``*_READY`` or
      ``GENERATION_FAILED``
    * runs the reading countdown while the book summary is displayed
    * ``reset()`` cancels whatever is in flight and bumps the epoch, so a late
      result from an abandoned call is dropped instead of leaking into the
      new run
    """

    def __init__(self, kind: FlowKind, assistant: Any, *, reading_tick: Optional[float] = None) -> None:
        self.id = uuid.uuid4().hex
        self.kind = FlowKind(kind)
        self.assistant = assistant
        self.reading_tick = reading_tick if reading_tick is not None else settings.TICK_SECONDS
        if self.kind is FlowKind.TOPIC:
            self._transition, self._initial, self._generating = topic.transition, topic.TopicState, topic.GENERATING_STEPS
        else:
            self._transition, self._initial, self._generating = book.transition, book.BookState, book.GENERATING_STEPS
        self.state: FlowState = self._initial()
        self.device = StreamedAudioDevice()
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None
        self._reading: Optional[Countdown] = None

    # ------------------------------------------------------------------ public

    @property
    def epoch(self) -> int:
        """Bumped on every reset; work started under an older epoch is stale."""
        return self._epoch

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def reading_remaining(self) -> Optional[int]:
        if self._reading is None or self._reading.cancelled:
            return None
        return self._reading.remaining

    async def dispatch(self, event: FlowEvent, *, wait: bool = True) -> FlowState:
        """Apply a user event; with ``wait`` return only once any call it triggered has settled."""
        if event.type in INTERNAL_EVENTS:
            raise InvalidTransition(f"'{event.type.value}' cannot be sent by a client.")
        if event.type is EventType.RESET:
            return await self.reset()
        self._apply(event)
        if wait:
            await self.settled()
        return self.state

    async def settled(self) -> None:
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def reset(self) -> FlowState:
        self._abandon()
        self._apply(FlowEvent(EventType.RESET))
        return self.state

    def close(self) -> None:
        """Drop everything in flight; used when the session is discarded."""
        self._abandon()

    # ---------------------------------------------------------------- internal

    def _abandon(self) -> None:
        self._epoch += 1
        if self._task is not None and not self._task.done():
            log.info("[%s] cancelling in-flight call at %s", self.id, self.state.step.value)
            self._task.cancel()
        self._task = None
        self._stop_reading()

    def _apply(self, event: FlowEvent) -> None:
        prev = self.state.step
        self.state = self._transition(self.state, event)
        log.info("[%s] %s --%s--> %s", self.id, prev.value, event.type.value, self.state.step.value)
        if self.state.notice is not None:
            log.warning("[%s] notice: %s", self.id, self.state.notice.description)
        self._on_enter(prev)

    def _on_enter(self, prev) -> None:
        step = self.state.step
        if step is prev:
            return
        if self.kind is FlowKind.BOOK:
            if prev is book.BookStep.SUMMARY_DISPLAY:
                self._stop_reading()
            if step is book.BookStep.SUMMARY_DISPLAY and not self.state.reading_time_up:
                self._start_reading(self.state.reading_seconds)
        if step in self._generating:
            self._launch(step)

    def _launch(self, step) -> None:
        if self.busy:
            # transitions only enter generating_* from interactive steps
            raise RuntimeError(f"call already in flight while entering {step.value}")
        call = self._call_for(self.state)
        self._task = asyncio.get_running_loop().create_task(self._run(self._epoch, step, call))

    async def _run(self, epoch: int, step, call: Call) -> None:
        try:
            event = await call()
        except asyncio.CancelledError:
            log.info("[%s] call for %s cancelled", self.id, step.value)
            raise
        except AssessmentError as e:
            event = FlowEvent(EventType.GENERATION_FAILED, {"error": e})
        except Exception as e:
            log.exception("[%s] unexpected failure in %s", self.id, step.value)
            event = FlowEvent(EventType.GENERATION_FAILED, {"error": GenerationFailed(str(e) or type(e).__name__)})
        if epoch != self._epoch or self.state.step is not step:
            log.info("[%s] discarding stale result for %s", self.id, step.value)
            return
        self._apply(event)

    def _call_for(self, s: FlowState) -> Call:
        a = self.assistant
        if isinstance(s, topic.TopicState):
            if s.step is topic.TopicStep.GENERATING_QUESTIONS:
                async def call() -> FlowEvent:
                    qs = await a.generate_topic_questions(s.topic, s.initial_speech)
                    return FlowEvent(EventType.QUESTIONS_READY, {"questions": qs})
            else:
                async def call() -> FlowEvent:
                    report = await a.analyze_speech(s.topic, list(s.questions), list(s.answers))
                    return FlowEvent(EventType.REPORT_READY, {"report": report})
            return call

        if s.step is book.BookStep.GENERATING_SUMMARY:
            async def call() -> FlowEvent:
                summary = await a.get_book_summary(s.book)
                return FlowEvent(EventType.SUMMARY_READY, {"summary": summary})
        elif s.step is book.BookStep.GENERATING_QUESTIONS:
            async def call() -> FlowEvent:
                rapid, follow = await a.generate_book_questions(s.book, s.summary)
                return FlowEvent(EventType.QUESTIONS_READY, {"rapid_fire": rapid, "follow_up": follow})
        else:
            async def call() -> FlowEvent:
                report = await a.analyze_book_answers(
                    s.book, s.summary,
                    list(s.rapid_fire_questions), list(s.rapid_fire_answers),
                    list(s.follow_up_questions), list(s.follow_up_answers),
                )
                return FlowEvent(EventType.REPORT_READY, {"report": report})
        return call

    # reading window ----------------------------------------------------------

    def _start_reading(self, seconds: int) -> None:
        self._stop_reading()
        epoch = self._epoch

        def done() -> None:
            if epoch == self._epoch and self.state.step is book.BookStep.SUMMARY_DISPLAY:
                self._apply(FlowEvent(EventType.READING_TIME_UP))

        self._reading = Countdown(seconds, on_complete=done, interval=self.reading_tick)
        self._reading.start()

    def _stop_reading(self) -> None:
        if self._reading is not None:
            self._reading.cancel()
