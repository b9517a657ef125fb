from pydantic import BaseModel
from typing import Optional

class TranscribeRes(BaseModel):
    transcript: Optional[str] = None
    error: Optional[str] = None
