from fastapi import APIRouter

from app.services.catalog import BOOKS, DEFAULT_READING_SECONDS, READING_WINDOWS, TOPICS

router = APIRouter(prefix="/catalog", tags=["catalog"])

@router.get("")
async def catalog():
    """What the wheels spin over and the reading windows a learner can pick."""
    return {
        "topics": list(TOPICS),
        "books": list(BOOKS),
        "reading_windows": list(READING_WINDOWS),
        "default_reading_seconds": DEFAULT_READING_SECONDS,
    }
