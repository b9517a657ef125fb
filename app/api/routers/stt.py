import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.errors import TranscriptionFailed
from app.schemas.stt import TranscribeRes
from app.services.stt.transcriber import get_transcriber

router = APIRouter(prefix="/transcribe", tags=["stt"])
log = logging.getLogger("stt")

@router.post("", response_model=TranscribeRes, response_model_exclude_none=True)
async def transcribe(request: Request, transcriber=Depends(get_transcriber)):
    """Raw audio body in, ``{"transcript"}`` out. The Content-Type header names the audio format."""
    if not transcriber.configured:
        log.error("transcription backend is not configured")
        return JSONResponse({"error": "Server configuration error: missing transcription API key."}, status_code=500)

    audio = await request.body()
    if not audio:
        return JSONResponse({"error": "Empty audio file received."}, status_code=400)

    content_type = request.headers.get("content-type", "audio/webm")
    try:
        text = await transcriber.transcribe(audio, content_type)
    except TranscriptionFailed as e:
        return JSONResponse({"error": e.message}, status_code=502)
    return TranscribeRes(transcript=text)
