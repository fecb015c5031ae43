"""Coaching signal and score statistics arithmetic.

Pure functions only: no I/O, no persistence. The session store applies these
when a grade comes in.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from interview_coach.services.interview_state import (
    SIGNAL_NAMES,
    CoachingSignals,
    SignalDelta,
)

MIN_SCORE = 0.0
MAX_SCORE = 10.0
DEFAULT_SCORE_WINDOW = 10
GENERAL_FOCUS = "General improvement"

# Priority order matters: earlier signals win ties.
FOCUS_LABELS: dict[str, str] = {
    "missing_metrics": "Add measurable impact/metrics",
    "weak_result": "Stronger results + reflection",
    "unclear_task": "Clarify task/constraints",
    "rambling": "Be more concise/structured",
}


def apply_signal_updates(
    base: CoachingSignals,
    delta: SignalDelta | None = None,
) -> CoachingSignals:
    """
    Add a partial signal delta to the current counters.

    Missing delta fields count as zero. Negative values are added as-is;
    callers only ever pass non-negative increments.
    """
    if delta is None:
        return base
    return CoachingSignals(
        **{
            name: getattr(base, name) + (getattr(delta, name) or 0)
            for name in SIGNAL_NAMES
        }
    )


def average_score(scores: list[float]) -> float:
    """Mean of the scores rounded to one decimal, half away from zero."""
    if not scores:
        return 0.0
    mean = sum(scores) / len(scores)
    rounded = Decimal(repr(mean)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(rounded)


def compute_stats_after_grade(
    last_scores: list[float],
    new_score: float,
    window: int = DEFAULT_SCORE_WINDOW,
) -> tuple[list[float], float]:
    """
    Push a score into the rolling window.

    Returns:
        (last_scores, avg_score) with at most ``window`` scores, oldest evicted first
    """
    scores = [*last_scores, new_score][-window:]
    return scores, average_score(scores)


def current_focus_from_signals(signals: CoachingSignals) -> str:
    """Map the strongest weakness signal to a coaching label."""
    best_name: str | None = None
    best_value = 0
    for name in FOCUS_LABELS:
        value = getattr(signals, name)
        if value > best_value:
            best_name, best_value = name, value
    if best_name is None:
        return GENERAL_FOCUS
    return FOCUS_LABELS[best_name]


def top_signals(signals: CoachingSignals, limit: int = 3) -> list[tuple[str, int]]:
    """Signals sorted by value, highest first; ties keep priority order."""
    pairs = [(name, getattr(signals, name)) for name in SIGNAL_NAMES]
    pairs.sort(key=lambda pair: pair[1], reverse=True)
    return pairs[:limit]


def clamp_score(value: Any) -> float:
    """Coerce to a number in [0, 10]; anything non-numeric or non-finite is 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MIN_SCORE
    if not math.isfinite(number):
        return MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, number))


def format_score(value: float) -> str:
    """Render 5.0 as "5" and 7.5 as "7.5"."""
    return f"{value:g}"
