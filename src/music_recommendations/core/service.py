"""Recommendation scoring engine.

Vote accounting with removal at a score floor, plus the two retrieval
algorithms: ranked top-N and score-weighted random pick.

Every operation reads current state, computes, and writes. There is no lock
between the read and the write, so concurrent votes on one recommendation
can lose an update, and two concurrent inserts of one name can both pass the
uniqueness pre-check (the table's unique constraint rejects the second).
"""

from __future__ import annotations

import random
from typing import Callable, Optional, Protocol

from .errors import ConflictError, NotFoundError
from .models import Recommendation, RecommendationCreate, ScoreFilter
from .selection import SelectionStage, fetch_pool, initial_stage, next_stage, pick_index

DELETION_FLOOR = -5


class RecommendationStore(Protocol):
    async def find_by_name(self, name: str) -> Optional[Recommendation]: ...

    async def find(self, recommendation_id: int) -> Optional[Recommendation]: ...

    async def create(self, candidate: RecommendationCreate) -> Recommendation: ...

    async def update_score(self, recommendation_id: int, new_score: int) -> Recommendation: ...

    async def remove(self, recommendation_id: int) -> None: ...

    async def find_all(
        self,
        score: Optional[int] = None,
        score_filter: Optional[ScoreFilter] = None,
    ) -> list[Recommendation]: ...

    async def get_amount_by_score(self, amount: int) -> list[Recommendation]: ...

    async def find_latest(self, amount: int) -> list[Recommendation]: ...


def _check_amount(amount: int) -> None:
    # storage treats a negative LIMIT as unbounded
    if amount < 1:
        raise ValueError(f"amount must be a positive integer, got {amount!r}")


class RecommendationService:
    """Business rules for inserting, voting on and retrieving recommendations.

    Args:
        repository: Storage collaborator.
        random_source: Zero-argument callable returning a float in [0, 1).
            Called once per draw, so a stub can fix each draw independently.
    """

    def __init__(
        self,
        repository: RecommendationStore,
        random_source: Callable[[], float] = random.random,
    ):
        self.repository = repository
        self._random = random_source

    async def insert(self, candidate: RecommendationCreate) -> None:
        existing = await self.repository.find_by_name(candidate.name)
        if existing is not None:
            raise ConflictError("Recommendations names must be unique")
        await self.repository.create(candidate)

    async def get_by_id(self, recommendation_id: int) -> Recommendation:
        recommendation = await self.repository.find(recommendation_id)
        if recommendation is None:
            raise NotFoundError()
        return recommendation

    async def upvote(self, recommendation_id: int) -> None:
        recommendation = await self.get_by_id(recommendation_id)
        await self.repository.update_score(recommendation_id, recommendation.score + 1)

    async def downvote(self, recommendation_id: int) -> None:
        """Decrement the score, removing the recommendation once it reaches the floor.

        The decremented score is written before the removal so observers of
        the table always see it.
        """
        recommendation = await self.get_by_id(recommendation_id)
        new_score = recommendation.score - 1
        await self.repository.update_score(recommendation_id, new_score)
        if new_score <= DELETION_FLOOR:
            await self.repository.remove(recommendation_id)

    async def get(self) -> list[Recommendation]:
        return await self.repository.find_all()

    async def get_top(self, amount: int) -> list[Recommendation]:
        _check_amount(amount)
        return await self.repository.get_amount_by_score(amount)

    async def get_latest(self, amount: int) -> list[Recommendation]:
        """The ``amount`` most recently submitted recommendations, newest first."""
        _check_amount(amount)
        return await self.repository.find_latest(amount)

    async def get_random(self) -> Recommendation:
        """Pick one recommendation, favoring those scored above 10.

        Raises:
            NotFoundError: the table is empty.
        """
        stage = initial_stage(self._random())
        while stage is not SelectionStage.EXHAUSTED:
            pool = await fetch_pool(self.repository, stage)
            if pool:
                return pool[pick_index(self._random(), len(pool))]
            stage = next_stage(stage)
        raise NotFoundError()
