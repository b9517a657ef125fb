# app/services/stt/deepgram_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.errors import TranscriptionFailed

log = logging.getLogger("deepgram")


class DeepgramTranscriber:
    """
    Remote transcription through Deepgram's prerecorded endpoint.
    The raw recording is posted as-is with its content type.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "nova-2",
        url: str = "https://api.deepgram.com/v1/listen",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def _transcript_of(data: Dict[str, Any]) -> str:
        try:
            return data["results"]["channels"][0]["alternatives"][0]["transcript"] or ""
        except (KeyError, IndexError, TypeError):
            raise TranscriptionFailed("Transcription service returned an unexpected response.")

    async def transcribe(self, audio: bytes, content_type: str = "audio/webm") -> str:
        if not self.api_key:
            raise TranscriptionFailed("Transcription service is not configured (DEEPGRAM_API_KEY missing).")
        if not audio:
            raise TranscriptionFailed("No audio was provided.")

        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": content_type or "audio/webm",
        }
        params = {"model": self.model, "smart_format": "true"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, params=params, headers=headers, content=audio)
        except httpx.RequestError as e:
            log.error("deepgram request failed: %s", e)
            raise TranscriptionFailed("Could not reach the transcription service.")

        if r.status_code >= 400:
            log.error("deepgram HTTP %d: %s", r.status_code, r.text[:300])
            raise TranscriptionFailed(f"Transcription failed (HTTP {r.status_code}).")
        try:
            data = r.json()
        except ValueError:
            raise TranscriptionFailed("Transcription service returned invalid JSON.")

        text = self._transcript_of(data).strip()
        log.info("deepgram transcript: bytes=%d chars=%d", len(audio), len(text))
        return text
