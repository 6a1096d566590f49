"""Shared test helpers and fixtures."""

from __future__ import annotations

from typing import Callable

import pytest
import pytest_asyncio
from faker import Faker
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from music_recommendations.core.models import Recommendation, RecommendationCreate
from music_recommendations.repository import RecommendationRepository
from music_recommendations.sqlmodels import Base

MEDIA_LINK = "https://www.youtube.com/watch?v=y1dbbrfekAM"

fake = Faker()


def fixed_draws(*values: float) -> Callable[[], float]:
    """A random source that returns ``values`` in order, one per call.

    Fails the test if the code under test draws more often than expected.
    """
    remaining = list(values)

    def draw() -> float:
        assert remaining, f"unexpected extra random draw (expected {len(values)})"
        return remaining.pop(0)

    draw.remaining = remaining
    return draw


def make_candidate(name: str | None = None) -> RecommendationCreate:
    return RecommendationCreate(name=name or fake.unique.sentence(nb_words=5), media_link=MEDIA_LINK)


def make_recommendation(recommendation_id: int = 1, score: int = 0, name: str | None = None) -> Recommendation:
    return Recommendation(
        id=recommendation_id,
        name=name or fake.unique.sentence(nb_words=5),
        media_link=MEDIA_LINK,
        score=score,
    )


def make_many(amount: int, scores: list[int] | None = None) -> list[Recommendation]:
    """Build ``amount`` recommendations named ``name 0`` .. ``name N-1``."""
    return [
        make_recommendation(i + 1, scores[i] if scores else fake.random_int(0, 200), name=f"name {i}")
        for i in range(amount)
    ]


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite file with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def repository(session_factory) -> RecommendationRepository:
    return RecommendationRepository(session_factory)


@pytest_asyncio.fixture
async def insert_with_score(repository):
    """Insert a recommendation and force its score."""

    async def insert(score: int = 0, name: str | None = None) -> Recommendation:
        created = await repository.create(make_candidate(name))
        if score:
            return await repository.update_score(created.id, score)
        return created

    return insert
