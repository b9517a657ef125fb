# app/services/capture/speech_capture.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Protocol

from app.core.errors import DeviceUnavailable, PermissionDenied, TranscriptionFailed
from app.services.timer.countdown import Countdown

log = logging.getLogger("capture")


class AudioDevice(Protocol):
    content_type: str

    def open(self) -> None: ...
    def write(self, chunk: bytes) -> None: ...
    def close(self) -> bytes: ...


class Transcriber(Protocol):
    async def transcribe(self, audio: bytes, content_type: str) -> str: ...


class StreamedAudioDevice:
    """
    The user's microphone as seen from the server: the browser records and
    streams chunks to us. Only one capture may hold it at a time.
    """

    def __init__(self, content_type: str = "audio/webm") -> None:
        self.content_type = content_type
        self.permission_denied = False
        self._chunks: List[bytes] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def deny_permission(self) -> None:
        self.permission_denied = True

    def grant_permission(self) -> None:
        self.permission_denied = False

    def open(self) -> None:
        if self.permission_denied:
            raise PermissionDenied(
                "Microphone access was denied. Please allow access in your browser settings."
            )
        if self._open:
            raise DeviceUnavailable("The microphone is already recording. Stop the current recording first.")
        self._chunks = []
        self._open = True

    def write(self, chunk: bytes) -> None:
        if not self._open:
            raise DeviceUnavailable("Could not record: the microphone is not open.")
        if chunk:
            self._chunks.append(chunk)

    def close(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks = []
        self._open = False
        return data


class SpeechCapture:
    """
    One recording cycle: ``start()`` takes the device and starts the answer
    window; ``stop()`` gives the device back and returns the transcript.

    ``stop()`` never raises for transcription problems: it returns "" and
    leaves the reason in ``last_error``.
    """

    def __init__(
        self,
        device: AudioDevice,
        transcriber: Transcriber,
        window_seconds: int = 60,
        tick_seconds: float = 1.0,
    ) -> None:
        self.device = device
        self.transcriber = transcriber
        self.window_seconds = window_seconds
        self.tick_seconds = tick_seconds
        self.last_error: Optional[TranscriptionFailed] = None
        self._timer: Optional[Countdown] = None
        self._recording = False

    @property
    def recording(self) -> bool:
        return self._recording

    @property
    def remaining(self) -> Optional[int]:
        return self._timer.remaining if self._timer is not None else None

    async def start(
        self,
        on_tick: Optional[Callable[[int], Any]] = None,
        on_expire: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.last_error = None
        self.device.open()  # PermissionDenied / DeviceUnavailable propagate to the caller
        self._recording = True
        self._timer = Countdown(self.window_seconds, on_tick=on_tick, on_complete=on_expire, interval=self.tick_seconds)
        self._timer.start()
        log.info("capture started (%ds window)", self.window_seconds)

    def feed(self, chunk: bytes) -> None:
        self.device.write(chunk)

    def abort(self) -> None:
        """Release the device and drop the recording without transcribing it."""
        if not self._recording:
            return
        self._recording = False
        if self._timer is not None and not self._timer.completed:
            self._timer.cancel()
        self.device.close()
        log.info("capture aborted")

    async def stop(self) -> str:
        if not self._recording:
            return ""
        self._recording = False
        # stop() may run inside the expiry callback; never cancel the timer task from itself
        if self._timer is not None and not self._timer.completed:
            self._timer.cancel()
        try:
            audio = self.device.close()
        except Exception as e:
            log.error("closing the audio device failed: %s", e)
            self.last_error = TranscriptionFailed("Could not finish the recording.")
            return ""

        if not audio:
            self.last_error = TranscriptionFailed("No audio was recorded. Please try again.")
            return ""

        try:
            text = await self.transcriber.transcribe(audio, self.device.content_type)
        except TranscriptionFailed as e:
            self.last_error = e
            return ""
        except Exception as e:
            log.exception("transcriber crashed")
            self.last_error = TranscriptionFailed(f"An error occurred during transcription: {e}")
            return ""

        text = (text or "").strip()
        if not text:
            self.last_error = TranscriptionFailed("No speech was detected. Please try again.")
        log.info("capture stopped: bytes=%d text_len=%d", len(audio), len(text))
        return text
