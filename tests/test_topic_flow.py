from dataclasses import replace

import pytest

from app.core.errors import GenerationFailed, InvalidTransition
from app.schemas.report import Report
from app.services.flows.events import EventType, FlowEvent, Notice
from app.services.flows.topic import TRANSITIONS, TopicState, TopicStep, transition
from fakes import CHARTS, TOPIC_QUESTIONS


def ev(kind, **payload):
    return FlowEvent(EventType(kind), payload)


def at(step, **fields):
    return replace(TopicState(), step=step, **fields)


def test_happy_path():
    s = TopicState()
    s = transition(s, ev("spin_started"))
    assert s.step is TopicStep.TOPIC_SPINNING
    s = transition(s, ev("item_selected", item="The Future of Work"))
    assert (s.step, s.topic) == (TopicStep.TOPIC_SELECTED, "The Future of Work")
    s = transition(s, ev("start"))
    assert s.step is TopicStep.INITIAL_SPEECH
    s = transition(s, ev("speech_submitted", text="  It matters.  "))
    assert (s.step, s.initial_speech) == (TopicStep.GENERATING_QUESTIONS, "It matters.")
    s = transition(s, ev("questions_ready", questions=TOPIC_QUESTIONS))
    assert s.step is TopicStep.QUESTION_DISPLAY
    assert s.questions == tuple(TOPIC_QUESTIONS)
    s = transition(s, ev("start_answers"))
    s = transition(s, ev("answers_submitted", answers=["a", "b", "c"]))
    assert s.step is TopicStep.GENERATING_REPORT
    s = transition(s, ev("report_ready", report=Report(narrative_text="ok", chart_data=CHARTS)))
    assert (s.step, s.score, s.grade) == (TopicStep.SCORE_DISPLAY, 86, "Excellent")
    s = transition(s, ev("show_report"))
    assert s.step is TopicStep.REPORT_DISPLAY
    assert s.notice is None


def test_custom_topic_needs_three_characters():
    s = transition(TopicState(), ev("custom_submitted", text=" ab "))
    assert s.step is TopicStep.TOPIC_SELECTION
    assert s.notice.title == "Topic Too Short"
    s = transition(s, ev("custom_submitted", text=" abc "))
    assert (s.step, s.topic, s.notice) == (TopicStep.TOPIC_SELECTED, "abc", None)


def test_spin_can_only_land_on_a_catalog_topic():
    for item in ("x", "Climate change", ""):
        s = transition(at(TopicStep.TOPIC_SPINNING), ev("item_selected", item=item))
        assert s.step is TopicStep.TOPIC_SELECTION
        assert s.topic == ""
        assert s.notice.title == "Invalid Selection"


def test_empty_initial_speech_returns_to_topic_selected():
    s = transition(at(TopicStep.INITIAL_SPEECH, topic="Art"), ev("speech_submitted", text="   "))
    assert s.step is TopicStep.TOPIC_SELECTED
    assert s.notice.title == "Empty Speech"


def test_incomplete_answers_block_the_report():
    base = at(TopicStep.FINAL_SPEECH, topic="Art", questions=tuple(TOPIC_QUESTIONS))
    for answers in (["a", "b"], ["a", "", "c"], None):
        s = transition(base, ev("answers_submitted", answers=answers))
        assert s.step is TopicStep.QUESTION_DISPLAY
        assert s.answers == ()
        assert s.notice.title == "Incomplete Answers"


def test_generation_failures_go_back_one_interactive_step():
    failed = ev("generation_failed", error=GenerationFailed("nope"))
    s = transition(at(TopicStep.GENERATING_QUESTIONS, topic="Art"), failed)
    assert s.step is TopicStep.TOPIC_SELECTED
    assert s.notice.description == "nope"
    s = transition(at(TopicStep.GENERATING_REPORT, topic="Art"), failed)
    assert s.step is TopicStep.QUESTION_DISPLAY


def test_wrong_question_count_is_a_generation_failure():
    s = transition(at(TopicStep.GENERATING_QUESTIONS), ev("questions_ready", questions=["only one"]))
    assert s.step is TopicStep.TOPIC_SELECTED
    assert s.notice.code == "generation_failed"


def test_unreadable_chart_data_still_reaches_score_display():
    report = Report(narrative_text="ok", chart_data="not json")
    s = transition(at(TopicStep.GENERATING_REPORT), ev("report_ready", report=report))
    assert (s.step, s.score, s.grade) == (TopicStep.SCORE_DISPLAY, 0, "Error")


def test_reset_from_every_step_clears_everything():
    for step in TopicStep:
        s = at(
            step, topic="Art", initial_speech="x", questions=tuple(TOPIC_QUESTIONS), answers=("a", "b", "c"),
            report=Report(narrative_text="ok", chart_data=CHARTS), score=86, grade="Excellent",
            notice=Notice("Oops", "bad"),
        )
        assert transition(s, ev("reset")) == TopicState()


def test_table_is_exhaustive():
    for step in TopicStep:
        for kind in EventType:
            if kind is EventType.RESET:
                continue
            if (step, kind) in TRANSITIONS:
                continue
            with pytest.raises(InvalidTransition):
                transition(at(step), FlowEvent(kind))


def test_every_step_has_a_way_forward_or_is_final():
    sources = {step for step, _ in TRANSITIONS}
    assert set(TopicStep) - sources == {TopicStep.REPORT_DISPLAY}
