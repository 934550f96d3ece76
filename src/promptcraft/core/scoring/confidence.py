"""Confidence scorer — a heuristic [0, 1] estimate of prompt quality."""

from __future__ import annotations

from typing import Mapping

from promptcraft.core.context.models import TaskContext
from promptcraft.core.knowledge.models import RetrievalStats

# Tunable. Must sum to 1.0 so a perfect request scores exactly 1.
CONFIDENCE_WEIGHTS: Mapping[str, float] = {
    "completeness": 0.40,
    "retrieval_count": 0.15,
    "retrieval_similarity": 0.25,
    "enhancement": 0.20,
}


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


def confidence_signals(
    task_context: TaskContext,
    stats: RetrievalStats,
    enhancement_applied: bool,
) -> dict[str, float]:
    """Each sub-signal, already clamped to [0, 1]."""
    lists = (
        task_context.technical_requirements,
        task_context.ui_requirements,
        task_context.constraints,
    )
    completeness = sum(1 for items in lists if items) / len(lists)
    expected = max(stats.expected, 1)
    return {
        "completeness": clamp(completeness),
        "retrieval_count": clamp(stats.used / expected),
        "retrieval_similarity": clamp(stats.mean_similarity),
        "enhancement": 1.0 if enhancement_applied else 0.0,
    }


def score_confidence(
    task_context: TaskContext,
    stats: RetrievalStats,
    enhancement_applied: bool,
    weights: Mapping[str, float] = CONFIDENCE_WEIGHTS,
) -> float:
    """Weighted sum of the sub-signals, clamped to [0, 1]."""
    signals = confidence_signals(task_context, stats, enhancement_applied)
    total = sum(weights.get(name, 0.0) * value for name, value in signals.items())
    return round(clamp(total), 4)
