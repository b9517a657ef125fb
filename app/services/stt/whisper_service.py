# app/services/stt/whisper_service.py
from __future__ import annotations
from typing import Any, Optional
import os, tempfile, asyncio, logging, re
from difflib import SequenceMatcher

from app.core.errors import TranscriptionFailed

log = logging.getLogger("whisper")
_lock = asyncio.Lock()

def _normalize_for_compare(s: str) -> str:
    s = s.lower().strip()
    s = re.sub(r"\s+", " ", s)
    s = re.sub(r"[.?!]+$", "", s)
    return s

def _dedupe_sentences(text: str) -> str:
    """Whisper likes to loop on silence; drop consecutive (near-)identical sentences."""
    parts = re.split(r"(?<=[.!?])\s+", (text or "").strip())
    out, last_norm = [], ""
    for p in parts:
        p_norm = _normalize_for_compare(p)
        if p_norm and (p_norm == last_norm or
                       (last_norm and SequenceMatcher(None, p_norm, last_norm).ratio() >= 0.92)):
            continue
        if p.strip():
            out.append(p.strip())
            last_norm = p_norm
    s = " ".join(out)
    s = re.sub(r"\b(\w+)(\s+\1){2,}\b", r"\1", s, flags=re.IGNORECASE)
    s = re.sub(r"\s+", " ", s).strip()
    return s

def _suffix_for(content_type: str) -> str:
    ct = (content_type or "").lower()
    if "webm" in ct: return ".webm"
    if "ogg" in ct or "opus" in ct: return ".ogg"
    if "wav" in ct: return ".wav"
    if "m4a" in ct or "mp4" in ct or "aac" in ct: return ".m4a"
    if "mpeg" in ct or "mp3" in ct: return ".mp3"
    return ".wav"

class WhisperService:
    """
    Local faster-whisper backend (install the ``whisper`` extra).

    The model is loaded once, on the first transcription, and shared by every
    instance. ffmpeg inside faster-whisper does the decoding, so the upload is
    written to a temp file with a suffix matching its content type.
    """
    _model: Any = None
    _loaded_name: Optional[str] = None

    def __init__(self, model_name: str = "base.en", device: str = "cpu", compute_type: str = "int8"):
        self.model_name = model_name
        self.device = device
        self.compute_type = compute_type

    @property
    def configured(self) -> bool:
        return True

    async def _ensure_model(self):
        if WhisperService._model is not None and WhisperService._loaded_name == self.model_name:
            return
        async with _lock:
            if WhisperService._model is not None and WhisperService._loaded_name == self.model_name:
                return
            try:
                from faster_whisper import WhisperModel
            except ImportError:
                raise TranscriptionFailed("Local transcription needs the faster-whisper package.")
            log.warning("[WhisperService] loading: model=%s device=%s compute=%s",
                        self.model_name, self.device, self.compute_type)
            WhisperService._model = await asyncio.to_thread(
                WhisperModel, self.model_name, device=self.device, compute_type=self.compute_type
            )
            WhisperService._loaded_name = self.model_name

    def _transcribe_file(self, path: str, language: str) -> str:
        segments, info = WhisperService._model.transcribe(
            path,
            language=language,
            task="transcribe",
            vad_filter=True,
            beam_size=5,
            condition_on_previous_text=False,
        )
        text = " ".join(s.text.strip() for s in segments if getattr(s, "text", None)).strip()
        log.info("[WhisperService] len=%.1fs chars=%d", getattr(info, "duration", 0.0), len(text))
        return text

    async def transcribe(self, audio: bytes, content_type: str = "audio/webm", language: str = "en") -> str:
        if not audio:
            raise TranscriptionFailed("No audio was provided.")
        await self._ensure_model()

        with tempfile.NamedTemporaryFile(suffix=_suffix_for(content_type), delete=False) as f:
            f.write(audio)
            path = f.name
        try:
            text = await asyncio.to_thread(self._transcribe_file, path, language)
        except Exception as e:  # ffmpeg/PyAV decode errors included
            log.error("[WhisperService] transcription failed: %s", e)
            raise TranscriptionFailed(f"Local transcription failed: {e}")
        finally:
            os.remove(path)

        text = _dedupe_sentences(text)
        if text and text[0].islower():
            text = text[0].upper() + text[1:]
        return text
