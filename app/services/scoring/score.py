# app/services/scoring/score.py
from __future__ import annotations

import json
import logging
import math
from typing import Any, List, Union

from app.schemas.report import ChartDescriptor, ScoreResult

log = logging.getLogger("score")

NOT_AVAILABLE = "Not Available"
ERROR = "Error"

# (exclusive lower bound, grade), checked top-down
GRADE_THRESHOLDS = (
    (85, "Excellent"),
    (70, "Very Good"),
    (50, "Good"),
)
FALLBACK_GRADE = "Needs Improvement"

ChartPayload = Union[str, List[Any], None]


def grade_for(score: int) -> str:
    for bound, grade in GRADE_THRESHOLDS:
        if score > bound:
            return grade
    return FALLBACK_GRADE


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _load(payload: ChartPayload) -> List[Any]:
    if isinstance(payload, str):
        payload = json.loads(payload)
    if not isinstance(payload, list):
        raise TypeError(f"chart payload must be a list, got {type(payload).__name__}")
    return payload


def _is_score(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def cumulative_score(payload: ChartPayload) -> ScoreResult:
    """
    Average every numeric ``score`` of every bar-chart record into 0..100.

    Never raises: unparseable payloads (or integers too large for a float)
    give ``(0, "Error")``, payloads with no bar-chart scores give
    ``(0, "Not Available")``.
    """
    try:
        charts = _load(payload)
        scores: List[float] = []
        for chart in charts:
            if not isinstance(chart, dict) or chart.get("type") != "bar":
                continue
            data = chart.get("data")
            if not isinstance(data, list):
                continue
            for rec in data:
                if isinstance(rec, dict) and _is_score(rec.get("score")):
                    scores.append(float(rec["score"]))
        if not scores:
            return ScoreResult(score=0, grade=NOT_AVAILABLE)
        total = sum(scores)
        if math.isfinite(total):
            mean = total / len(scores)
        else:
            # scores near the float limit overflow when summed
            mean = sum(s / len(scores) for s in scores)
        score = max(0, min(100, _round_half_up(mean)))
    except (ValueError, TypeError, ArithmeticError) as e:
        log.warning("chart payload unreadable: %s", e)
        return ScoreResult(score=0, grade=ERROR)

    return ScoreResult(score=score, grade=grade_for(score))


def parse_charts(payload: ChartPayload) -> List[ChartDescriptor]:
    """Charts worth rendering; malformed entries are skipped, bad payloads give []."""
    try:
        raw = _load(payload)
    except (ValueError, TypeError) as e:
        log.warning("could not parse chart data: %s", e)
        return []
    out: List[ChartDescriptor] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            out.append(ChartDescriptor.model_validate(item))
        except ValueError:
            log.debug("skipping malformed chart: %r", item)
    return out
