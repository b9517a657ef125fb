from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Union

# Shapes the generative model must return. Aliases follow the camelCase
# keys the prompts ask for.

def _clean(items: List[str]) -> List[str]:
    out = [str(s).strip() for s in items]
    if any(not s for s in out):
        raise ValueError("questions must not be blank")
    return out

class TopicQuestionsOut(BaseModel):
    questions: List[str] = Field(..., min_length=3, max_length=3)

    @field_validator("questions")
    @classmethod
    def _no_blank(cls, v: List[str]) -> List[str]:
        return _clean(v)

class BookSummaryOut(BaseModel):
    summary: str = Field(..., min_length=1)

class BookQuestionsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rapid_fire_questions: List[str] = Field(..., alias="rapidFireQuestions", min_length=5, max_length=5)
    follow_up_questions: List[str] = Field(..., alias="followUpQuestions", min_length=2, max_length=2)

    @field_validator("rapid_fire_questions", "follow_up_questions")
    @classmethod
    def _no_blank(cls, v: List[str]) -> List[str]:
        return _clean(v)

class AnalysisOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report: str = Field(..., min_length=1)
    charts_data: Union[str, list] = Field(..., alias="chartsData")
