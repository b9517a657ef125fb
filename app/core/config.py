# app/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Gemini (generateContent REST API)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT: float = 30.0
    GEMINI_MAX_RETRIES: int = 2

    # Transcription
    TRANSCRIBER: str = "deepgram"   # "deepgram" | "whisper"
    DEEPGRAM_API_KEY: Optional[str] = None
    DEEPGRAM_MODEL: str = "nova-2"
    DEEPGRAM_URL: str = "https://api.deepgram.com/v1/listen"
    WHISPER_MODEL: str = "base.en"

    # Email (SMTP relay)
    EMAIL_SERVER_USER: Optional[str] = None
    EMAIL_SERVER_PASSWORD: Optional[str] = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    EMAIL_SENDER_NAME: str = "Aura"

    # Timing windows (seconds)
    ANSWER_WINDOW_SECONDS: int = 60
    TICK_SECONDS: float = 1.0
    SPIN_SECONDS: float = 3.0
    SPIN_TICK_SECONDS: float = 0.3
    SPIN_SETTLE_SECONDS: float = 1.0

    # In-memory flow sessions (idle seconds before a session is dropped)
    SESSION_TTL_SECONDS: int = 3600
    SESSION_MAX: int = 1024

    # pydantic v2 settings
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",   # ignore unknown env vars instead of raising errors
    )

settings = Settings()
