from __future__ import annotations

from pydantic import BaseModel, Field
from typing import List, Optional

from app.schemas.report import ChartDescriptor
from app.services.flows.events import EventType, FlowKind


class FlowCreateReq(BaseModel):
    kind: FlowKind = Field(..., examples=["topic", "book"])


class EventReq(BaseModel):
    type: EventType = Field(..., examples=["custom_submitted", "start", "answers_submitted"])
    text: Optional[str] = None          # custom_submitted, speech_submitted
    item: Optional[str] = None          # item_selected
    answers: Optional[List[str]] = None # answers_submitted, rapid_fire_submitted
    seconds: Optional[int] = None       # timer_selected

    def payload(self) -> dict:
        return self.model_dump(exclude={"type"}, exclude_none=True)


class NoticeOut(BaseModel):
    title: str
    description: str
    variant: str = "destructive"
    code: Optional[str] = None


class ReportView(BaseModel):
    narrative_text: str
    chart_data: str
    charts: List[ChartDescriptor] = []


class FlowStateOut(BaseModel):
    session_id: str
    kind: FlowKind
    step: str
    busy: bool = False
    title: str = ""
    notice: Optional[NoticeOut] = None

    # topic flow
    initial_speech: Optional[str] = None
    questions: Optional[List[str]] = None
    answers: Optional[List[str]] = None

    # book flow
    summary: Optional[str] = None
    reading_seconds: Optional[int] = None
    reading_remaining: Optional[int] = None
    reading_time_up: Optional[bool] = None
    rapid_fire_questions: Optional[List[str]] = None
    follow_up_questions: Optional[List[str]] = None
    rapid_fire_answers: Optional[List[str]] = None
    follow_up_answers: Optional[List[str]] = None

    # results
    report: Optional[ReportView] = None
    score: Optional[int] = None
    grade: Optional[str] = None


class EmailReq(BaseModel):
    email: str = Field(..., examples=["learner@example.com"])


class EmailRes(BaseModel):
    success: bool
    message: str


class SpinFrame(BaseModel):
    type: str = Field(..., examples=["display", "selected"])
    item: str
