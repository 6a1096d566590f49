"""Tests for the recommendation scoring engine against a mocked repository."""

from unittest.mock import AsyncMock, call

import pytest
from tests.conftest import fixed_draws, make_candidate, make_many, make_recommendation

from music_recommendations.core.errors import ConflictError, NotFoundError
from music_recommendations.core.models import ScoreFilter
from music_recommendations.core.service import RecommendationService


def make_service(*draws: float) -> RecommendationService:
    return RecommendationService(AsyncMock(), random_source=fixed_draws(*draws))


class TestInsert:
    async def test_creates_new_recommendation(self):
        service = make_service()
        service.repository.find_by_name.return_value = None
        candidate = make_candidate()

        result = await service.insert(candidate)

        assert result is None
        service.repository.find_by_name.assert_awaited_once_with(candidate.name)
        service.repository.create.assert_awaited_once_with(candidate)

    async def test_duplicate_name_is_conflict(self):
        service = make_service()
        existing = make_recommendation()
        service.repository.find_by_name.return_value = existing

        with pytest.raises(ConflictError, match="Recommendations names must be unique"):
            await service.insert(make_candidate(existing.name))

        service.repository.create.assert_not_awaited()


class TestGetById:
    async def test_returns_recommendation(self):
        service = make_service()
        recommendation = make_recommendation(7)
        service.repository.find.return_value = recommendation

        assert await service.get_by_id(7) == recommendation

    async def test_unknown_id_is_not_found(self):
        service = make_service()
        service.repository.find.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_by_id(99)


class TestVotes:
    async def test_upvote_increments_score(self):
        service = make_service()
        service.repository.find.return_value = make_recommendation(3, score=4)

        await service.upvote(3)

        service.repository.update_score.assert_awaited_once_with(3, 5)

    async def test_downvote_decrements_score(self):
        service = make_service()
        service.repository.find.return_value = make_recommendation(3, score=0)

        await service.downvote(3)

        service.repository.update_score.assert_awaited_once_with(3, -1)
        service.repository.remove.assert_not_awaited()

    async def test_downvote_to_minus_four_keeps_recommendation(self):
        service = make_service()
        service.repository.find.return_value = make_recommendation(3, score=-3)

        await service.downvote(3)

        service.repository.update_score.assert_awaited_once_with(3, -4)
        service.repository.remove.assert_not_awaited()

    async def test_downvote_to_floor_removes_after_update(self):
        service = make_service()
        service.repository.find.return_value = make_recommendation(3, score=-4)

        await service.downvote(3)

        assert service.repository.mock_calls[1:] == [call.update_score(3, -5), call.remove(3)]

    async def test_downvote_below_floor_removes(self):
        service = make_service()
        service.repository.find.return_value = make_recommendation(3, score=-5)

        await service.downvote(3)

        service.repository.update_score.assert_awaited_once_with(3, -6)
        service.repository.remove.assert_awaited_once_with(3)

    @pytest.mark.parametrize("vote", ["upvote", "downvote"])
    async def test_unknown_id_is_not_found_and_untouched(self, vote):
        service = make_service()
        service.repository.find.return_value = None

        with pytest.raises(NotFoundError):
            await getattr(service, vote)(99)

        service.repository.update_score.assert_not_awaited()
        service.repository.remove.assert_not_awaited()


class TestListings:
    async def test_get_returns_everything(self):
        service = make_service()
        recommendations = make_many(3)
        service.repository.find_all.return_value = recommendations

        assert await service.get() == recommendations
        service.repository.find_all.assert_awaited_once_with()

    async def test_get_top_delegates_amount(self):
        service = make_service()
        recommendations = make_many(2, scores=[9, 4])
        service.repository.get_amount_by_score.return_value = recommendations

        assert await service.get_top(10) == recommendations
        service.repository.get_amount_by_score.assert_awaited_once_with(10)

    async def test_get_latest_delegates_amount(self):
        service = make_service()
        recommendations = make_many(2)
        service.repository.find_latest.return_value = recommendations

        assert await service.get_latest(2) == recommendations
        service.repository.find_latest.assert_awaited_once_with(2)

    @pytest.mark.parametrize("listing", ["get_top", "get_latest"])
    @pytest.mark.parametrize("amount", [0, -1])
    async def test_non_positive_amount_is_rejected(self, listing, amount):
        service = make_service()

        with pytest.raises(ValueError, match="positive integer"):
            await getattr(service, listing)(amount)

        assert service.repository.mock_calls == []


class TestGetRandom:
    async def test_high_score_pool(self):
        """Pool draw 0.6 queries score > 10; index draw 0.6 over 15 picks index 9."""
        service = make_service(0.6, 0.6)
        recommendations = make_many(15, scores=[20] * 15)
        service.repository.find_all.return_value = recommendations

        result = await service.get_random()

        assert result == recommendations[9]
        service.repository.find_all.assert_awaited_once_with(score=10, score_filter=ScoreFilter.GT)

    async def test_low_score_pool(self):
        service = make_service(0.8, 0.8)
        recommendations = make_many(20, scores=[1] * 20)
        service.repository.find_all.return_value = recommendations

        result = await service.get_random()

        assert result == recommendations[16]
        service.repository.find_all.assert_awaited_once_with(score=10, score_filter=ScoreFilter.LTE)

    async def test_draws_are_independent(self):
        service = make_service(0.1, 0.95)
        recommendations = make_many(10, scores=[50] * 10)
        service.repository.find_all.return_value = recommendations

        assert await service.get_random() == recommendations[9]

    async def test_empty_pool_falls_back_to_unfiltered_query(self):
        service = make_service(0.6, 0.6)
        recommendations = make_many(20, scores=[5] * 20)
        service.repository.find_all.side_effect = [[], recommendations]

        result = await service.get_random()

        assert result == recommendations[12]
        assert service.repository.find_all.await_args_list == [
            call(score=10, score_filter=ScoreFilter.GT),
            call(),
        ]

    async def test_empty_low_pool_falls_back_to_high_scores(self):
        service = make_service(0.8, 0.5)
        high_rows = make_many(4, scores=[11, 25, 40, 90])
        service.repository.find_all.side_effect = [[], high_rows]

        result = await service.get_random()

        assert result == high_rows[2]
        assert service.repository.find_all.await_args_list == [
            call(score=10, score_filter=ScoreFilter.LTE),
            call(),
        ]

    async def test_empty_table_is_not_found(self):
        draws = fixed_draws(0.9)
        service = RecommendationService(AsyncMock(), random_source=draws)
        service.repository.find_all.side_effect = [[], []]

        with pytest.raises(NotFoundError):
            await service.get_random()

        assert service.repository.find_all.await_count == 2
        assert draws.remaining == []
