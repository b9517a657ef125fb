from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class ChartDescriptor(BaseModel):
    type: str = Field(..., examples=["bar", "pie"])
    title: str = ""
    data: List[Dict[str, Any]] = []
    config: Optional[Dict[str, Any]] = None

class Report(BaseModel):
    narrative_text: str
    chart_data: str = Field(..., description="JSON-encoded array of chart descriptors")

class ScoreResult(BaseModel):
    score: int
    grade: str
