"""Score-weighted random selection.

A pick walks a small stage machine. The first random draw chooses the
primary pool: 70% of the time the high-score pool (score > 10), otherwise
the low-score pool (score <= 10). An empty primary pool falls back to a
fresh unfiltered query, and an empty table exhausts the machine:

    HIGH_SCORE ─┐
                ├─> UNFILTERED ─> EXHAUSTED
    LOW_SCORE ──┘

Each stage is one storage call. A second, independent draw picks the index
inside the first non-empty pool.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Protocol

from .models import Recommendation, ScoreFilter

HIGH_SCORE_PROBABILITY = 0.7
SCORE_THRESHOLD = 10


class SelectionStage(str, Enum):
    HIGH_SCORE = "high_score"
    LOW_SCORE = "low_score"
    UNFILTERED = "unfiltered"
    EXHAUSTED = "exhausted"


class PoolSource(Protocol):
    async def find_all(
        self,
        score: int | None = None,
        score_filter: ScoreFilter | None = None,
    ) -> list[Recommendation]: ...


def _check_draw(draw: float) -> None:
    if not 0.0 <= draw < 1.0:
        raise ValueError(f"Random draw must be in [0, 1), got {draw!r}")


def initial_stage(draw: float) -> SelectionStage:
    """Choose the primary pool from the first random draw."""
    _check_draw(draw)
    if draw < HIGH_SCORE_PROBABILITY:
        return SelectionStage.HIGH_SCORE
    return SelectionStage.LOW_SCORE


def next_stage(stage: SelectionStage) -> SelectionStage:
    """Stage to try after ``stage`` produced an empty pool."""
    if stage in (SelectionStage.HIGH_SCORE, SelectionStage.LOW_SCORE):
        return SelectionStage.UNFILTERED
    return SelectionStage.EXHAUSTED


async def fetch_pool(source: PoolSource, stage: SelectionStage) -> list[Recommendation]:
    """Query storage for the candidates of one stage."""
    if stage is SelectionStage.HIGH_SCORE:
        return await source.find_all(score=SCORE_THRESHOLD, score_filter=ScoreFilter.GT)
    if stage is SelectionStage.LOW_SCORE:
        return await source.find_all(score=SCORE_THRESHOLD, score_filter=ScoreFilter.LTE)
    if stage is SelectionStage.UNFILTERED:
        return await source.find_all()
    raise ValueError(f"Stage {stage.value} has no pool")


def pick_index(draw: float, size: int) -> int:
    """Map a draw in [0, 1) onto an index in [0, size)."""
    _check_draw(draw)
    if size <= 0:
        raise ValueError("Cannot pick from an empty pool")
    # float rounding can push draw * size up to size for draws just below 1
    return min(math.floor(draw * size), size - 1)
