# app/api/routers/flows.py
from __future__ import annotations

import asyncio, json, logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from app.core.config import settings
from app.core.errors import AssessmentError, SessionNotFound, ValidationFailed
from app.schemas.flows import (
    EmailReq, EmailRes, EventReq, FlowCreateReq, FlowStateOut, NoticeOut, ReportView, SpinFrame,
)
from app.services.capture.speech_capture import SpeechCapture
from app.services.catalog import BOOKS, TOPICS
from app.services.email.mailer import get_mailer
from app.services.email.report_email import send_report_email
from app.services.flows.book import BookState, BookStep
from app.services.flows.controller import FlowController
from app.services.flows.events import EventType, FlowEvent, FlowKind
from app.services.flows.store import FlowStore, get_store
from app.services.flows.topic import TopicStep
from app.services.randomizer import Randomizer
from app.services.scoring.score import parse_charts
from app.services.stt.transcriber import get_transcriber

router = APIRouter(prefix="/flows", tags=["flows"])
log = logging.getLogger("flows")

_SPINNING = {TopicStep.TOPIC_SPINNING, BookStep.BOOK_SPINNING}
_EMAILABLE = {TopicStep.SCORE_DISPLAY, TopicStep.REPORT_DISPLAY, BookStep.SCORE_DISPLAY, BookStep.REPORT_DISPLAY}


def snapshot(ctl: FlowController) -> FlowStateOut:
    s = ctl.state
    out = FlowStateOut(
        session_id=ctl.id,
        kind=ctl.kind,
        step=s.step.value,
        busy=ctl.busy,
        title=s.title,
        notice=NoticeOut(**vars(s.notice)) if s.notice else None,
        score=s.score,
        grade=s.grade,
    )
    if s.report is not None:
        out.report = ReportView(
            narrative_text=s.report.narrative_text,
            chart_data=s.report.chart_data,
            charts=parse_charts(s.report.chart_data),
        )
    if isinstance(s, BookState):
        out.summary = s.summary or None
        out.reading_seconds = s.reading_seconds
        out.reading_remaining = ctl.reading_remaining
        out.reading_time_up = s.reading_time_up
        out.rapid_fire_questions = list(s.rapid_fire_questions)
        out.follow_up_questions = list(s.follow_up_questions)
        out.rapid_fire_answers = list(s.rapid_fire_answers)
        out.follow_up_answers = list(s.follow_up_answers)
    else:
        out.initial_speech = s.initial_speech or None
        out.questions = list(s.questions)
        out.answers = list(s.answers)
    return out


@router.post("", response_model=FlowStateOut, status_code=201)
async def create_flow(req: FlowCreateReq, store: FlowStore = Depends(get_store)):
    return snapshot(store.create(req.kind))


@router.get("/{sid}", response_model=FlowStateOut)
async def get_flow(sid: str, store: FlowStore = Depends(get_store)):
    return snapshot(store.get(sid))


@router.post("/{sid}/events", response_model=FlowStateOut)
async def send_event(sid: str, req: EventReq, store: FlowStore = Depends(get_store)):
    ctl = store.get(sid)
    await ctl.dispatch(FlowEvent(req.type, req.payload()))
    return snapshot(ctl)


@router.post("/{sid}/reset", response_model=FlowStateOut)
async def reset_flow(sid: str, store: FlowStore = Depends(get_store)):
    ctl = store.get(sid)
    await ctl.reset()
    return snapshot(ctl)


@router.delete("/{sid}")
async def delete_flow(sid: str, store: FlowStore = Depends(get_store)):
    store.drop(sid)
    return {"ok": True}


@router.post("/{sid}/spin")
async def spin(sid: str, store: FlowStore = Depends(get_store)):
    """
    Spin the wheel over the flow's catalog. Streams NDJSON frames:
    ``{"type": "display", "item": ...}`` while spinning, then one
    ``{"type": "selected", "item": ...}`` once the pick is applied.
    """
    ctl = store.get(sid)
    await ctl.dispatch(FlowEvent(EventType.SPIN_STARTED))
    epoch = ctl.epoch
    wheel = Randomizer(
        TOPICS if ctl.kind is FlowKind.TOPIC else BOOKS,
        duration=settings.SPIN_SECONDS,
        interval=settings.SPIN_TICK_SECONDS,
        settle=settings.SPIN_SETTLE_SECONDS,
    )

    async def stream():
        queue: asyncio.Queue = asyncio.Queue()

        async def selected(item: str) -> None:
            # a reset (or a newer spin that already landed) makes this pick stale
            if ctl.epoch == epoch and ctl.state.step in _SPINNING:
                await ctl.dispatch(FlowEvent(EventType.ITEM_SELECTED, {"item": item}))
            queue.put_nowait(SpinFrame(type="selected", item=item))

        task = asyncio.create_task(
            wheel.spin(on_display=lambda item: queue.put_nowait(SpinFrame(type="display", item=item)),
                       on_selected=selected)
        )
        task.add_done_callback(lambda _: queue.put_nowait(None))
        try:
            while True:
                frame = await queue.get()
                if frame is None:
                    break
                yield frame.model_dump_json() + "\n"
            if not task.cancelled() and task.exception() is not None:
                log.error("[%s] spin failed: %s", ctl.id, task.exception())
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(stream(), media_type="application/x-ndjson")


@router.post("/{sid}/email", response_model=EmailRes)
async def email_report(sid: str, req: EmailReq, store: FlowStore = Depends(get_store), mailer=Depends(get_mailer)):
    ctl = store.get(sid)
    s = ctl.state
    if s.step not in _EMAILABLE or s.report is None:
        return EmailRes(success=False, message="Finish the assessment before emailing the report.")
    res = await send_report_email(
        mailer, req.email, s.title, s.score or 0, s.grade or "", s.report.narrative_text,
    )
    return EmailRes(success=res.success, message=res.message)


async def _send_error(ws: WebSocket, err: AssessmentError) -> None:
    await ws.send_json({"type": "error", **err.to_dict()})


@router.websocket("/{sid}/capture")
async def capture(ws: WebSocket, sid: str, store: FlowStore = Depends(get_store), transcriber=Depends(get_transcriber)):
    """
    Microphone capture for one flow.

    client -> ``{"type": "start", "content_type": "audio/webm"}``, binary audio
    chunks, ``{"type": "stop"}``; or ``{"type": "permission_denied"}`` when
    the browser refused the microphone.
    server -> ``started``, ``tick`` (remaining seconds), ``transcript`` and
    ``error`` messages. The answer window closing acts like ``stop``.
    """
    await ws.accept()
    try:
        ctl = store.get(sid)
    except SessionNotFound as e:
        await _send_error(ws, e)
        await ws.close(code=4404)
        return

    cap = SpeechCapture(ctl.device, transcriber,
                        window_seconds=settings.ANSWER_WINDOW_SECONDS, tick_seconds=settings.TICK_SECONDS)

    async def tick(remaining: int) -> None:
        await ws.send_json({"type": "tick", "remaining": remaining})

    async def finish() -> None:
        if not cap.recording:
            return
        text = await cap.stop()
        if cap.last_error is not None:
            await _send_error(ws, cap.last_error)
        await ws.send_json({"type": "transcript", "text": text})

    try:
        while True:
            msg = await ws.receive()
            if msg["type"] == "websocket.disconnect":
                break
            if msg.get("bytes") is not None:
                if cap.recording:
                    cap.feed(msg["bytes"])
                continue
            try:
                data = json.loads(msg.get("text") or "{}")
            except ValueError:
                await _send_error(ws, ValidationFailed("Capture messages must be JSON."))
                continue

            kind = data.get("type")
            if kind in ("start", "permission_denied"):
                if kind == "permission_denied":
                    ctl.device.deny_permission()
                else:
                    ctl.device.grant_permission()
                    if data.get("content_type"):
                        ctl.device.content_type = data["content_type"]
                try:
                    await cap.start(on_tick=tick, on_expire=finish)
                except AssessmentError as e:
                    log.info("[%s] capture refused: %s", ctl.id, e.message)
                    await _send_error(ws, e)
                    continue
                await ws.send_json({"type": "started", "seconds": cap.window_seconds})
            elif kind == "stop":
                await finish()
            else:
                await _send_error(ws, ValidationFailed(f"Unknown capture message '{kind}'."))
    except WebSocketDisconnect:
        pass
    finally:
        cap.abort()
