"""Storage collaborator for the scoring engine.

Each call opens its own session, so every read and write is a separate
round trip and the engine owns the ordering between them.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .core.errors import ConflictError, NotFoundError
from .core.models import Recommendation, RecommendationCreate, ScoreFilter
from .db import get_session_factory
from .sqlmodels import RecommendationRow

logger = logging.getLogger(__name__)


class RecommendationRepository:
    """CRUD and sorted listings over the ``recommendations`` table."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        # resolved lazily so DATABASE_URL can be set after import
        return self._session_factory or get_session_factory()

    async def find_by_name(self, name: str) -> Optional[Recommendation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(RecommendationRow).where(RecommendationRow.name == name)
            )
            row = result.scalar_one_or_none()
        return Recommendation.model_validate(row) if row else None

    async def find(self, recommendation_id: int) -> Optional[Recommendation]:
        async with self.session_factory() as session:
            row = await session.get(RecommendationRow, recommendation_id)
        return Recommendation.model_validate(row) if row else None

    async def create(self, candidate: RecommendationCreate) -> Recommendation:
        row = RecommendationRow(name=candidate.name, media_link=candidate.media_link, score=0)
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConflictError("Recommendations names must be unique") from exc
        logger.info("Created recommendation %d (%s)", row.id, row.name)
        return Recommendation.model_validate(row)

    async def update_score(self, recommendation_id: int, new_score: int) -> Recommendation:
        async with self.session_factory() as session:
            row = await session.get(RecommendationRow, recommendation_id)
            if row is None:
                raise NotFoundError()
            row.score = new_score
            await session.commit()
        return Recommendation.model_validate(row)

    async def remove(self, recommendation_id: int) -> None:
        async with self.session_factory() as session:
            await session.execute(
                delete(RecommendationRow).where(RecommendationRow.id == recommendation_id)
            )
            await session.commit()
        logger.info("Removed recommendation %d", recommendation_id)

    async def find_all(
        self,
        score: Optional[int] = None,
        score_filter: Optional[ScoreFilter] = None,
    ) -> list[Recommendation]:
        """List recommendations in insertion order.

        Args:
            score: Threshold for the score predicate.
            score_filter: ``GT`` keeps scores above ``score``, ``LTE`` keeps
                scores at or below it. Both arguments are needed to filter.
        """
        query = select(RecommendationRow).order_by(RecommendationRow.id.asc())
        if score is not None and score_filter is not None:
            if ScoreFilter(score_filter) is ScoreFilter.GT:
                query = query.where(RecommendationRow.score > score)
            else:
                query = query.where(RecommendationRow.score <= score)

        async with self.session_factory() as session:
            result = await session.execute(query)
            rows = result.scalars().all()
        return [Recommendation.model_validate(r) for r in rows]

    async def get_amount_by_score(self, amount: int) -> list[Recommendation]:
        """Highest scores first, ties broken by id ascending."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(RecommendationRow)
                .order_by(RecommendationRow.score.desc(), RecommendationRow.id.asc())
                .limit(amount)
            )
            rows = result.scalars().all()
        return [Recommendation.model_validate(r) for r in rows]

    async def find_latest(self, amount: int) -> list[Recommendation]:
        """Newest first, limited to ``amount``."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(RecommendationRow)
                .order_by(RecommendationRow.id.desc())
                .limit(amount)
            )
            rows = result.scalars().all()
        return [Recommendation.model_validate(r) for r in rows]

    async def truncate(self) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(RecommendationRow))
            await session.commit()
        logger.info("Removed all recommendations")
