# app/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.core.config import settings
from app.services.flows.store import get_store

log = logging.getLogger("lifespan")

@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.GEMINI_API_KEY:
        log.warning("GEMINI_API_KEY is not set; question and report generation will fail")
    if settings.TRANSCRIBER.lower() == "deepgram" and not settings.DEEPGRAM_API_KEY:
        log.warning("DEEPGRAM_API_KEY is not set; transcription will fail")
    if not (settings.EMAIL_SERVER_USER and settings.EMAIL_SERVER_PASSWORD):
        log.warning("EMAIL_SERVER_USER / EMAIL_SERVER_PASSWORD not set; report emails are disabled")
    yield
    # cancel whatever generation calls and timers are still in flight
    get_store().close()
