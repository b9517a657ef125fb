# app/services/flows/book.py
"""
Book-Summary flow: pick a book, read an AI summary against a timer, answer
five typed rapid-fire questions and two spoken follow-ups, get a report.

Like the topic flow, ``transition`` is pure and each ``generating_*`` step
stands for exactly one external call run by the controller.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from app.core.errors import AssessmentError, GenerationFailed, ValidationFailed
from app.schemas.report import Report
from app.services.catalog import BOOKS, DEFAULT_READING_SECONDS, READING_WINDOWS
from app.services.flows import machine
from app.services.flows.events import EventType, FlowEvent, Notice
from app.services.flows.validation import (
    validate_answers,
    validate_catalog_item,
    validate_question_set,
    validate_reading_window,
    validate_selection,
)
from app.services.scoring.score import cumulative_score

RAPID_FIRE_COUNT = 5
FOLLOW_UP_COUNT = 2


class BookStep(str, Enum):
    BOOK_SELECTION = "book_selection"
    BOOK_SPINNING = "book_spinning"
    BOOK_SELECTED = "book_selected"
    GENERATING_SUMMARY = "generating_summary"
    TIMER_SELECTION = "timer_selection"
    SUMMARY_DISPLAY = "summary_display"
    GENERATING_QUESTIONS = "generating_questions"
    RAPID_FIRE_QUESTIONS = "rapid_fire_questions"
    FOLLOW_UP_QUESTIONS = "follow_up_questions"
    GENERATING_REPORT = "generating_report"
    SCORE_DISPLAY = "score_display"
    REPORT_DISPLAY = "report_display"


GENERATING_STEPS = frozenset({
    BookStep.GENERATING_SUMMARY,
    BookStep.GENERATING_QUESTIONS,
    BookStep.GENERATING_REPORT,
})


@dataclass(frozen=True)
class BookState:
    step: BookStep = BookStep.BOOK_SELECTION
    book: str = ""
    summary: str = ""
    reading_seconds: int = DEFAULT_READING_SECONDS
    reading_time_up: bool = False
    rapid_fire_questions: Tuple[str, ...] = ()
    follow_up_questions: Tuple[str, ...] = ()
    rapid_fire_answers: Tuple[str, ...] = ()
    follow_up_answers: Tuple[str, ...] = ()
    report: Optional[Report] = None
    score: Optional[int] = None
    grade: Optional[str] = None
    notice: Optional[Notice] = None

    @property
    def title(self) -> str:
        return self.book


def _error_of(event: FlowEvent, default: str) -> AssessmentError:
    err = event.payload.get("error")
    return err if isinstance(err, AssessmentError) else GenerationFailed(default)


def _spin(state: BookState, event: FlowEvent) -> BookState:
    return replace(state, step=BookStep.BOOK_SPINNING)


def _item_selected(state: BookState, event: FlowEvent) -> BookState:
    try:
        item = validate_catalog_item(event.payload.get("item", ""), BOOKS, noun="book")
    except ValidationFailed as e:
        return machine.fail(state, BookStep.BOOK_SELECTION, e)
    return replace(state, step=BookStep.BOOK_SELECTED, book=item)


def _custom(state: BookState, event: FlowEvent) -> BookState:
    try:
        book = validate_selection(event.payload.get("text", ""), noun="book")
    except ValidationFailed as e:
        return machine.fail(state, BookStep.BOOK_SELECTION, e)
    return replace(state, step=BookStep.BOOK_SELECTED, book=book)


def _start(state: BookState, event: FlowEvent) -> BookState:
    return replace(state, step=BookStep.GENERATING_SUMMARY, summary="")


def _summary_ready(state: BookState, event: FlowEvent) -> BookState:
    summary = (event.payload.get("summary") or "").strip()
    if not summary:
        return machine.fail(state, BookStep.BOOK_SELECTED, GenerationFailed("The book summary came back empty."))
    return replace(state, step=BookStep.TIMER_SELECTION, summary=summary)


def _summary_failed(state: BookState, event: FlowEvent) -> BookState:
    return machine.fail(state, BookStep.BOOK_SELECTED, _error_of(event, "Could not generate the book summary."))


def _timer_selected(state: BookState, event: FlowEvent) -> BookState:
    try:
        seconds = validate_reading_window(event.payload.get("seconds"), READING_WINDOWS)
    except ValidationFailed as e:
        return machine.fail(state, BookStep.TIMER_SELECTION, e)
    return replace(state, step=BookStep.SUMMARY_DISPLAY, reading_seconds=seconds, reading_time_up=False)


def _time_up(state: BookState, event: FlowEvent) -> BookState:
    return replace(state, reading_time_up=True)


def _start_questions(state: BookState, event: FlowEvent) -> BookState:
    return replace(state, step=BookStep.GENERATING_QUESTIONS)


def _questions_ready(state: BookState, event: FlowEvent) -> BookState:
    try:
        rapid = validate_question_set(event.payload.get("rapid_fire"), RAPID_FIRE_COUNT, "rapid-fire questions")
        follow = validate_question_set(event.payload.get("follow_up"), FOLLOW_UP_COUNT, "follow-up questions")
    except GenerationFailed as e:
        return machine.fail(state, BookStep.SUMMARY_DISPLAY, e)
    return replace(
        state,
        step=BookStep.RAPID_FIRE_QUESTIONS,
        rapid_fire_questions=rapid,
        follow_up_questions=follow,
        rapid_fire_answers=(),
        follow_up_answers=(),
    )


def _questions_failed(state: BookState, event: FlowEvent) -> BookState:
    return machine.fail(state, BookStep.SUMMARY_DISPLAY, _error_of(event, "Could not generate questions for the book."))


def _rapid_fire(state: BookState, event: FlowEvent) -> BookState:
    try:
        answers = validate_answers(event.payload.get("answers"), len(state.rapid_fire_questions))
    except ValidationFailed as e:
        return machine.fail(state, BookStep.RAPID_FIRE_QUESTIONS, e, rapid_fire_answers=())
    return replace(state, step=BookStep.FOLLOW_UP_QUESTIONS, rapid_fire_answers=answers)


def _follow_up(state: BookState, event: FlowEvent) -> BookState:
    try:
        answers = validate_answers(event.payload.get("answers"), len(state.follow_up_questions))
    except ValidationFailed as e:
        return machine.fail(state, BookStep.FOLLOW_UP_QUESTIONS, e, follow_up_answers=())
    return replace(state, step=BookStep.GENERATING_REPORT, follow_up_answers=answers)


def _report_ready(state: BookState, event: FlowEvent) -> BookState:
    report = event.payload.get("report")
    if not isinstance(report, Report):
        return machine.fail(state, BookStep.FOLLOW_UP_QUESTIONS, GenerationFailed("The analysis came back empty."))
    result = cumulative_score(report.chart_data)
    return replace(state, step=BookStep.SCORE_DISPLAY, report=report, score=result.score, grade=result.grade)


def _report_failed(state: BookState, event: FlowEvent) -> BookState:
    return machine.fail(
        state, BookStep.FOLLOW_UP_QUESTIONS, _error_of(event, "Could not analyze your answers."),
        follow_up_answers=(),
    )


def _show_report(state: BookState, event: FlowEvent) -> BookState:
    return replace(state, step=BookStep.REPORT_DISPLAY)


S, E = BookStep, EventType

TRANSITIONS = {
    (S.BOOK_SELECTION, E.SPIN_STARTED): _spin,
    (S.BOOK_SELECTION, E.CUSTOM_SUBMITTED): _custom,
    (S.BOOK_SPINNING, E.SPIN_STARTED): _spin,
    (S.BOOK_SPINNING, E.ITEM_SELECTED): _item_selected,
    (S.BOOK_SELECTED, E.SPIN_STARTED): _spin,
    (S.BOOK_SELECTED, E.START): _start,
    (S.GENERATING_SUMMARY, E.SUMMARY_READY): _summary_ready,
    (S.GENERATING_SUMMARY, E.GENERATION_FAILED): _summary_failed,
    (S.TIMER_SELECTION, E.TIMER_SELECTED): _timer_selected,
    (S.SUMMARY_DISPLAY, E.READING_TIME_UP): _time_up,
    (S.SUMMARY_DISPLAY, E.START_QUESTIONS): _start_questions,
    (S.GENERATING_QUESTIONS, E.QUESTIONS_READY): _questions_ready,
    (S.GENERATING_QUESTIONS, E.GENERATION_FAILED): _questions_failed,
    (S.RAPID_FIRE_QUESTIONS, E.RAPID_FIRE_SUBMITTED): _rapid_fire,
    (S.FOLLOW_UP_QUESTIONS, E.ANSWERS_SUBMITTED): _follow_up,
    (S.GENERATING_REPORT, E.REPORT_READY): _report_ready,
    (S.GENERATING_REPORT, E.GENERATION_FAILED): _report_failed,
    (S.SCORE_DISPLAY, E.SHOW_REPORT): _show_report,
}

del S, E


def transition(state: BookState, event: FlowEvent) -> BookState:
    return machine.apply(TRANSITIONS, BookState, state, event)
