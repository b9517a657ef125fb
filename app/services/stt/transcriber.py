# app/services/stt/transcriber.py
from typing import Optional, Union

from app.core.config import settings
from app.services.stt.deepgram_service import DeepgramTranscriber
from app.services.stt.whisper_service import WhisperService

Transcriber = Union[DeepgramTranscriber, WhisperService]

# Singleton accessor
_service: Optional[Transcriber] = None
def get_transcriber() -> Transcriber:
    """Backend picked by ``TRANSCRIBER``: "deepgram" (default) or "whisper"."""
    global _service
    if _service is None:
        if settings.TRANSCRIBER.lower() == "whisper":
            _service = WhisperService(settings.WHISPER_MODEL)
        else:
            _service = DeepgramTranscriber(
                api_key=settings.DEEPGRAM_API_KEY or "",
                model=settings.DEEPGRAM_MODEL,
                url=settings.DEEPGRAM_URL,
            )
    return _service

def reset_transcriber():
    global _service
    _service = None
