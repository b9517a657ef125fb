# app/services/flows/validation.py
from __future__ import annotations

import re
from typing import Iterable, Sequence, Tuple

from app.core.errors import GenerationFailed, ValidationFailed

MIN_SELECTION_LENGTH = 3

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_selection(text: str, noun: str = "topic") -> str:
    value = (text or "").strip()
    if len(value) < MIN_SELECTION_LENGTH:
        raise ValidationFailed(
            f"Please enter a {noun} with at least {MIN_SELECTION_LENGTH} characters.",
            title=f"{noun.capitalize()} Too Short",
        )
    return value


def validate_catalog_item(item: str, catalog: Sequence[str], noun: str = "topic") -> str:
    """The wheel only ever lands on catalog entries."""
    value = (item or "").strip()
    if value not in catalog:
        raise ValidationFailed(f"No {noun} was selected from the list.", title="Invalid Selection")
    return value


def validate_single_response(text: str) -> str:
    value = (text or "").strip()
    if not value:
        raise ValidationFailed("Your speech was empty. Please try again.", title="Empty Speech")
    return value


def validate_answers(answers: Iterable[str], expected: int) -> Tuple[str, ...]:
    """All ``expected`` answers present and none blank."""
    values = tuple((a or "").strip() for a in (answers or ()))
    if len(values) < expected or any(not a for a in values):
        raise ValidationFailed(
            f"You did not answer all {expected} questions. Please try again.",
            title="Incomplete Answers",
        )
    if len(values) > expected:
        raise ValidationFailed(
            f"Expected {expected} answers, got {len(values)}.",
            title="Too Many Answers",
        )
    return values


def validate_reading_window(seconds, allowed: Sequence[int]) -> int:
    try:
        value = int(seconds)
    except (TypeError, ValueError):
        value = None
    if value not in allowed:
        choices = ", ".join(str(s) for s in allowed)
        raise ValidationFailed(f"Reading time must be one of {choices} seconds.", title="Invalid Timer")
    return value


def validate_email(address: str) -> str:
    value = (address or "").strip()
    if not _EMAIL.match(value):
        raise ValidationFailed("Please enter a valid email address.", title="Invalid Email")
    return value


def validate_question_set(questions: Iterable[str], expected: int, what: str = "questions") -> Tuple[str, ...]:
    values = tuple((q or "").strip() for q in (questions or ()))
    if len(values) != expected or any(not q for q in values):
        raise GenerationFailed(f"Expected {expected} {what}, got {len(values)}.")
    return values
