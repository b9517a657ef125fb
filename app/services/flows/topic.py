# app/services/flows/topic.py
"""
Speech-on-Topic flow.

    topic_selection ──spin──▶ topic_spinning ──item──▶ topic_selected
          │ custom (>=3 chars) ───────────────────────────▲   │ start
          ▼                                                   ▼
    initial_speech ──speech──▶ generating_questions ──▶ question_display
                                                               │ start_answers
    report_display ◀── score_display ◀── generating_report ◀── final_speech

``transition`` is pure: it never performs I/O. Entering a ``generating_*``
step is the controller's cue to launch the matching external call.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from app.core.errors import AssessmentError, GenerationFailed, ValidationFailed
from app.schemas.report import Report
from app.services.catalog import TOPICS
from app.services.flows import machine
from app.services.flows.events import EventType, FlowEvent, Notice
from app.services.flows.validation import (
    validate_answers,
    validate_catalog_item,
    validate_question_set,
    validate_selection,
    validate_single_response,
)
from app.services.scoring.score import cumulative_score

QUESTION_COUNT = 3


class TopicStep(str, Enum):
    TOPIC_SELECTION = "topic_selection"
    TOPIC_SPINNING = "topic_spinning"
    TOPIC_SELECTED = "topic_selected"
    INITIAL_SPEECH = "initial_speech"
    GENERATING_QUESTIONS = "generating_questions"
    QUESTION_DISPLAY = "question_display"
    FINAL_SPEECH = "final_speech"
    GENERATING_REPORT = "generating_report"
    SCORE_DISPLAY = "score_display"
    REPORT_DISPLAY = "report_display"


GENERATING_STEPS = frozenset({TopicStep.GENERATING_QUESTIONS, TopicStep.GENERATING_REPORT})


@dataclass(frozen=True)
class TopicState:
    step: TopicStep = TopicStep.TOPIC_SELECTION
    topic: str = ""
    initial_speech: str = ""
    questions: Tuple[str, ...] = ()
    answers: Tuple[str, ...] = ()
    report: Optional[Report] = None
    score: Optional[int] = None
    grade: Optional[str] = None
    notice: Optional[Notice] = None

    @property
    def title(self) -> str:
        return self.topic


def _spin(state: TopicState, event: FlowEvent) -> TopicState:
    return replace(state, step=TopicStep.TOPIC_SPINNING)


def _item_selected(state: TopicState, event: FlowEvent) -> TopicState:
    try:
        item = validate_catalog_item(event.payload.get("item", ""), TOPICS, noun="topic")
    except ValidationFailed as e:
        return machine.fail(state, TopicStep.TOPIC_SELECTION, e)
    return replace(state, step=TopicStep.TOPIC_SELECTED, topic=item)


def _custom(state: TopicState, event: FlowEvent) -> TopicState:
    try:
        topic = validate_selection(event.payload.get("text", ""), noun="topic")
    except ValidationFailed as e:
        return machine.fail(state, TopicStep.TOPIC_SELECTION, e)
    return replace(state, step=TopicStep.TOPIC_SELECTED, topic=topic)


def _start(state: TopicState, event: FlowEvent) -> TopicState:
    return replace(state, step=TopicStep.INITIAL_SPEECH, initial_speech="")


def _speech(state: TopicState, event: FlowEvent) -> TopicState:
    try:
        text = validate_single_response(event.payload.get("text", ""))
    except ValidationFailed as e:
        return machine.fail(state, TopicStep.TOPIC_SELECTED, e)
    return replace(state, step=TopicStep.GENERATING_QUESTIONS, initial_speech=text)


def _questions_ready(state: TopicState, event: FlowEvent) -> TopicState:
    try:
        questions = validate_question_set(event.payload.get("questions"), QUESTION_COUNT)
    except GenerationFailed as e:
        return machine.fail(state, TopicStep.TOPIC_SELECTED, e)
    return replace(state, step=TopicStep.QUESTION_DISPLAY, questions=questions, answers=())


def _questions_failed(state: TopicState, event: FlowEvent) -> TopicState:
    return machine.fail(state, TopicStep.TOPIC_SELECTED, _error_of(event, "Could not generate questions. Please try again."))


def _start_answers(state: TopicState, event: FlowEvent) -> TopicState:
    return replace(state, step=TopicStep.FINAL_SPEECH, answers=())


def _answers(state: TopicState, event: FlowEvent) -> TopicState:
    try:
        answers = validate_answers(event.payload.get("answers"), len(state.questions))
    except ValidationFailed as e:
        return machine.fail(state, TopicStep.QUESTION_DISPLAY, e, answers=())
    return replace(state, step=TopicStep.GENERATING_REPORT, answers=answers)


def _report_ready(state: TopicState, event: FlowEvent) -> TopicState:
    report = event.payload.get("report")
    if not isinstance(report, Report):
        return machine.fail(state, TopicStep.QUESTION_DISPLAY, GenerationFailed("The report came back empty."))
    result = cumulative_score(report.chart_data)
    return replace(state, step=TopicStep.SCORE_DISPLAY, report=report, score=result.score, grade=result.grade)


def _report_failed(state: TopicState, event: FlowEvent) -> TopicState:
    return machine.fail(state, TopicStep.QUESTION_DISPLAY, _error_of(event, "Could not generate the report. Please try again."))


def _show_report(state: TopicState, event: FlowEvent) -> TopicState:
    return replace(state, step=TopicStep.REPORT_DISPLAY)


def _error_of(event: FlowEvent, default: str) -> AssessmentError:
    err = event.payload.get("error")
    return err if isinstance(err, AssessmentError) else GenerationFailed(default)


S, E = TopicStep, EventType

TRANSITIONS = {
    (S.TOPIC_SELECTION, E.SPIN_STARTED): _spin,
    (S.TOPIC_SELECTION, E.CUSTOM_SUBMITTED): _custom,
    (S.TOPIC_SPINNING, E.SPIN_STARTED): _spin,
    (S.TOPIC_SPINNING, E.ITEM_SELECTED): _item_selected,
    (S.TOPIC_SELECTED, E.SPIN_STARTED): _spin,
    (S.TOPIC_SELECTED, E.START): _start,
    (S.INITIAL_SPEECH, E.SPEECH_SUBMITTED): _speech,
    (S.GENERATING_QUESTIONS, E.QUESTIONS_READY): _questions_ready,
    (S.GENERATING_QUESTIONS, E.GENERATION_FAILED): _questions_failed,
    (S.QUESTION_DISPLAY, E.START_ANSWERS): _start_answers,
    (S.FINAL_SPEECH, E.ANSWERS_SUBMITTED): _answers,
    (S.GENERATING_REPORT, E.REPORT_READY): _report_ready,
    (S.GENERATING_REPORT, E.GENERATION_FAILED): _report_failed,
    (S.SCORE_DISPLAY, E.SHOW_REPORT): _show_report,
}

del S, E


def transition(state: TopicState, event: FlowEvent) -> TopicState:
    return machine.apply(TRANSITIONS, TopicState, state, event)
