from dataclasses import replace

import pytest

from app.core.errors import GenerationFailed, InvalidTransition
from app.schemas.report import Report
from app.services.flows.book import TRANSITIONS, BookState, BookStep, transition
from app.services.flows.events import EventType, FlowEvent, Notice
from fakes import CHARTS, FOLLOW_UP, RAPID_FIRE, SUMMARY


def ev(kind, **payload):
    return FlowEvent(EventType(kind), payload)


def at(step, **fields):
    return replace(BookState(), step=step, **fields)


def test_happy_path():
    s = transition(BookState(), ev("custom_submitted", text="Dune"))
    assert (s.step, s.book) == (BookStep.BOOK_SELECTED, "Dune")
    s = transition(s, ev("start"))
    assert s.step is BookStep.GENERATING_SUMMARY
    s = transition(s, ev("summary_ready", summary=SUMMARY))
    assert s.step is BookStep.TIMER_SELECTION
    s = transition(s, ev("timer_selected", seconds=420))
    assert (s.step, s.reading_seconds) == (BookStep.SUMMARY_DISPLAY, 420)
    s = transition(s, ev("reading_time_up"))
    assert s.step is BookStep.SUMMARY_DISPLAY and s.reading_time_up
    s = transition(s, ev("start_questions"))
    assert s.step is BookStep.GENERATING_QUESTIONS
    s = transition(s, ev("questions_ready", rapid_fire=RAPID_FIRE, follow_up=FOLLOW_UP))
    assert s.step is BookStep.RAPID_FIRE_QUESTIONS
    s = transition(s, ev("rapid_fire_submitted", answers=["1", "2", "3", "4", "5"]))
    assert s.step is BookStep.FOLLOW_UP_QUESTIONS
    s = transition(s, ev("answers_submitted", answers=["x", "y"]))
    assert s.step is BookStep.GENERATING_REPORT
    s = transition(s, ev("report_ready", report=Report(narrative_text="ok", chart_data=CHARTS)))
    assert (s.step, s.score, s.grade) == (BookStep.SCORE_DISPLAY, 86, "Excellent")
    s = transition(s, ev("show_report"))
    assert s.step is BookStep.REPORT_DISPLAY


def test_spin_can_only_land_on_a_catalog_book():
    s = transition(at(BookStep.BOOK_SPINNING), ev("item_selected", item="x"))
    assert s.step is BookStep.BOOK_SELECTION
    assert s.notice.title == "Invalid Selection"
    s = transition(at(BookStep.BOOK_SPINNING), ev("item_selected", item="The Hobbit"))
    assert (s.step, s.book) == (BookStep.BOOK_SELECTED, "The Hobbit")


def test_reading_window_must_be_offered():
    s = transition(at(BookStep.TIMER_SELECTION, summary=SUMMARY), ev("timer_selected", seconds=200))
    assert s.step is BookStep.TIMER_SELECTION
    assert s.notice.title == "Invalid Timer"


def test_questions_can_start_before_time_is_up():
    s = transition(at(BookStep.SUMMARY_DISPLAY, summary=SUMMARY), ev("start_questions"))
    assert s.step is BookStep.GENERATING_QUESTIONS


def test_summary_failure_returns_to_book_selected():
    s = transition(at(BookStep.GENERATING_SUMMARY, book="Dune"), ev("generation_failed", error=GenerationFailed("down")))
    assert (s.step, s.book) == (BookStep.BOOK_SELECTED, "Dune")
    assert s.notice.description == "down"
    s = transition(at(BookStep.GENERATING_SUMMARY, book="Dune"), ev("summary_ready", summary="  "))
    assert s.step is BookStep.BOOK_SELECTED


def test_question_failure_returns_to_summary():
    s = transition(at(BookStep.GENERATING_QUESTIONS), ev("questions_ready", rapid_fire=RAPID_FIRE[:4], follow_up=FOLLOW_UP))
    assert s.step is BookStep.SUMMARY_DISPLAY
    assert s.notice is not None


def test_incomplete_answers_stay_on_their_step():
    base = dict(rapid_fire_questions=tuple(RAPID_FIRE), follow_up_questions=tuple(FOLLOW_UP))
    s = transition(at(BookStep.RAPID_FIRE_QUESTIONS, **base), ev("rapid_fire_submitted", answers=["1", "2", "", "4", "5"]))
    assert s.step is BookStep.RAPID_FIRE_QUESTIONS
    assert s.notice.title == "Incomplete Answers"
    s = transition(at(BookStep.FOLLOW_UP_QUESTIONS, **base), ev("answers_submitted", answers=["only one"]))
    assert s.step is BookStep.FOLLOW_UP_QUESTIONS
    assert s.follow_up_answers == ()


def test_report_failure_returns_to_follow_up():
    s = transition(at(BookStep.GENERATING_REPORT, follow_up_answers=("x", "y")), ev("generation_failed"))
    assert s.step is BookStep.FOLLOW_UP_QUESTIONS
    assert s.notice.code == "generation_failed"


def test_reset_from_every_step_clears_everything():
    for step in BookStep:
        s = at(
            step, book="Dune", summary=SUMMARY, reading_seconds=600, reading_time_up=True,
            rapid_fire_questions=tuple(RAPID_FIRE), follow_up_questions=tuple(FOLLOW_UP),
            rapid_fire_answers=("a",) * 5, follow_up_answers=("b", "c"),
            report=Report(narrative_text="ok", chart_data=CHARTS), score=86, grade="Excellent",
            notice=Notice("Oops", "bad"),
        )
        assert transition(s, ev("reset")) == BookState()


def test_table_is_exhaustive():
    for step in BookStep:
        for kind in EventType:
            if kind is EventType.RESET or (step, kind) in TRANSITIONS:
                continue
            with pytest.raises(InvalidTransition):
                transition(at(step), FlowEvent(kind))


def test_every_step_has_a_way_forward_or_is_final():
    sources = {step for step, _ in TRANSITIONS}
    assert set(BookStep) - sources == {BookStep.REPORT_DISPLAY}
