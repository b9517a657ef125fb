import asyncio

import pytest

from app.core.errors import DeviceUnavailable, PermissionDenied, TranscriptionFailed
from app.services.capture.speech_capture import SpeechCapture, StreamedAudioDevice
from fakes import FakeTranscriber, run


def test_stop_returns_transcript_and_releases_device():
    device = StreamedAudioDevice("audio/ogg")
    stt = FakeTranscriber(text="  hello there  ")

    async def go():
        cap = SpeechCapture(device, stt, window_seconds=60, tick_seconds=0.01)
        await cap.start()
        assert device.is_open
        cap.feed(b"abc")
        cap.feed(b"def")
        return await cap.stop(), cap

    text, cap = run(go())
    assert text == "hello there"
    assert cap.last_error is None
    assert stt.received == [(b"abcdef", "audio/ogg")]
    assert not device.is_open


def test_transcription_failure_still_releases_device():
    device = StreamedAudioDevice()
    stt = FakeTranscriber(error=TranscriptionFailed("remote down"))

    async def go():
        cap = SpeechCapture(device, stt, tick_seconds=0.01)
        await cap.start()
        cap.feed(b"audio")
        return await cap.stop(), cap

    text, cap = run(go())
    assert text == ""
    assert cap.last_error.message == "remote down"
    assert not device.is_open


def test_crashing_transcriber_is_reported_not_raised():
    device = StreamedAudioDevice()

    async def go():
        cap = SpeechCapture(device, FakeTranscriber(error=RuntimeError("boom")), tick_seconds=0.01)
        await cap.start()
        cap.feed(b"audio")
        return await cap.stop(), cap

    text, cap = run(go())
    assert text == ""
    assert isinstance(cap.last_error, TranscriptionFailed)
    assert not device.is_open


def test_empty_transcript_is_a_failure():
    async def go():
        cap = SpeechCapture(StreamedAudioDevice(), FakeTranscriber(text="   "), tick_seconds=0.01)
        await cap.start()
        cap.feed(b"audio")
        return await cap.stop(), cap

    text, cap = run(go())
    assert text == ""
    assert cap.last_error.code == "transcription_failed"


def test_no_audio_skips_the_transcriber():
    stt = FakeTranscriber()

    async def go():
        cap = SpeechCapture(StreamedAudioDevice(), stt, tick_seconds=0.01)
        await cap.start()
        return await cap.stop(), cap

    text, cap = run(go())
    assert text == "" and cap.last_error is not None
    assert stt.received == []


def test_second_stop_returns_empty():
    async def go():
        cap = SpeechCapture(StreamedAudioDevice(), FakeTranscriber(), tick_seconds=0.01)
        await cap.start()
        cap.feed(b"audio")
        first = await cap.stop()
        return first, await cap.stop()

    first, second = run(go())
    assert first and second == ""


def test_permission_denied_and_busy_device():
    device = StreamedAudioDevice()
    device.deny_permission()

    async def go():
        cap = SpeechCapture(device, FakeTranscriber(), tick_seconds=0.01)
        with pytest.raises(PermissionDenied):
            await cap.start()
        assert not cap.recording

        device.grant_permission()
        await cap.start()
        other = SpeechCapture(device, FakeTranscriber(), tick_seconds=0.01)
        with pytest.raises(DeviceUnavailable):
            await other.start()
        cap.abort()
        # retry after release works
        await other.start()
        other.abort()

    run(go())
    assert not device.is_open


def test_answer_window_expiry_fires_on_expire():
    expired, ticks = [], []

    async def go():
        cap = SpeechCapture(StreamedAudioDevice(), FakeTranscriber(), window_seconds=3, tick_seconds=0.005)

        async def on_expire():
            cap.feed(b"late")
            expired.append(await cap.stop())

        await cap.start(on_tick=ticks.append, on_expire=on_expire)
        cap.feed(b"audio")
        for _ in range(100):
            if expired:
                break
            await asyncio.sleep(0.01)

    run(go())
    assert ticks == [2, 1, 0]
    assert expired == ["I think this topic matters a lot."]
