# app/services/flows/machine.py
from __future__ import annotations

from dataclasses import replace
from typing import Callable, Mapping, Tuple, TypeVar

from app.core.errors import AssessmentError, InvalidTransition
from app.services.flows.events import EventType, FlowEvent, Notice

S = TypeVar("S")
Handler = Callable[[S, FlowEvent], S]
Table = Mapping[Tuple[object, EventType], Handler]


def apply(table: Table, initial: Callable[[], S], state: S, event: FlowEvent) -> S:
    """
    One step of a flow: ``RESET`` is valid everywhere and returns a fresh
    initial state; every other event must have an entry for the current step.
    The previous notice is cleared before the handler runs.
    """
    if event.type is EventType.RESET:
        return initial()
    handler = table.get((state.step, event.type))
    if handler is None:
        raise InvalidTransition(
            f"'{event.type.value}' is not allowed while in '{state.step.value}'."
        )
    return handler(replace(state, notice=None), event)


def fail(state: S, step, err: AssessmentError, **changes) -> S:
    """Land on ``step`` with a notice describing ``err``."""
    return replace(state, step=step, notice=Notice.from_error(err), **changes)

