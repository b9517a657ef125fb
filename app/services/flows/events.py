# app/services/flows/events.py
"""
Events and notices shared by the topic and book flows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from app.core.errors import AssessmentError


class FlowKind(str, Enum):
    TOPIC = "topic"
    BOOK = "book"


class EventType(str, Enum):
    # selection
    SPIN_STARTED = "spin_started"
    ITEM_SELECTED = "item_selected"          # randomizer landed; payload: item
    CUSTOM_SUBMITTED = "custom_submitted"    # payload: text
    START = "start"
    # capture
    SPEECH_SUBMITTED = "speech_submitted"    # single response; payload: text
    START_ANSWERS = "start_answers"
    RAPID_FIRE_SUBMITTED = "rapid_fire_submitted"  # payload: answers
    ANSWERS_SUBMITTED = "answers_submitted"  # payload: answers
    # reading
    TIMER_SELECTED = "timer_selected"        # payload: seconds
    READING_TIME_UP = "reading_time_up"
    START_QUESTIONS = "start_questions"
    # results of external calls
    SUMMARY_READY = "summary_ready"          # payload: summary
    QUESTIONS_READY = "questions_ready"      # payload: questions | rapid_fire, follow_up
    REPORT_READY = "report_ready"            # payload: report
    GENERATION_FAILED = "generation_failed"  # payload: error
    # display
    SHOW_REPORT = "show_report"
    RESET = "reset"


# Events only the controller emits (results of its own tasks and timers)
INTERNAL_EVENTS = frozenset({
    EventType.SUMMARY_READY,
    EventType.QUESTIONS_READY,
    EventType.REPORT_READY,
    EventType.GENERATION_FAILED,
    EventType.READING_TIME_UP,
})


@dataclass(frozen=True)
class FlowEvent:
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Notice:
    """A toast for the user; ``variant`` is "destructive" for errors."""
    title: str
    description: str
    variant: str = "destructive"
    code: Optional[str] = None

    @classmethod
    def from_error(cls, err: AssessmentError) -> "Notice":
        return cls(title=err.title, description=err.message, code=err.code)
