"""HTTP API for music recommendations.

Run: music-recommendations-api
Or:  uvicorn music_recommendations.api:app --reload
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, Path, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .core.errors import ConflictError, NotFoundError
from .core.models import Recommendation, RecommendationCreate
from .core.service import RecommendationService
from .db import close_db, init_db
from .repository import RecommendationRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def get_page_size() -> int:
    """Read RECOMMENDATIONS_PAGE_SIZE, which must be a positive integer."""
    raw = os.environ.get("RECOMMENDATIONS_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))
    try:
        page_size = int(raw)
    except ValueError:
        page_size = 0
    if page_size < 1:
        raise ValueError(f"RECOMMENDATIONS_PAGE_SIZE must be a positive integer, got {raw!r}")
    return page_size


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables on startup, release the engine on shutdown."""
    configure_logging()
    await init_db()
    logger.info("Music recommendations API started")
    try:
        yield
    finally:
        await close_db()
        logger.info("Music recommendations API stopped")


def get_recommendation_service() -> RecommendationService:
    return RecommendationService(RecommendationRepository())


router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a recommendation")
async def create_recommendation(
    candidate: RecommendationCreate,
    service: RecommendationService = Depends(get_recommendation_service),
) -> None:
    """Store a new recommendation with a score of 0. Names must be unique."""
    await service.insert(candidate)


@router.post("/{recommendation_id}/upvote", summary="Upvote a recommendation")
async def upvote_recommendation(
    recommendation_id: int,
    service: RecommendationService = Depends(get_recommendation_service),
) -> None:
    await service.upvote(recommendation_id)


@router.post("/{recommendation_id}/downvote", summary="Downvote a recommendation")
async def downvote_recommendation(
    recommendation_id: int,
    service: RecommendationService = Depends(get_recommendation_service),
) -> None:
    """Decrement the score. A recommendation that reaches -5 is removed."""
    await service.downvote(recommendation_id)


@router.get("", response_model=list[Recommendation], summary="Latest recommendations")
async def list_recommendations(
    request: Request,
    service: RecommendationService = Depends(get_recommendation_service),
):
    """Most recent recommendations, newest first."""
    return await service.get_latest(request.app.state.page_size)


@router.get("/random", response_model=Recommendation, summary="Score-weighted random pick")
async def random_recommendation(
    service: RecommendationService = Depends(get_recommendation_service),
):
    return await service.get_random()


@router.get("/top/{amount}", response_model=list[Recommendation], summary="Top recommendations by score")
async def top_recommendations(
    amount: int = Path(ge=1),
    service: RecommendationService = Depends(get_recommendation_service),
):
    return await service.get_top(amount)


@router.get("/{recommendation_id}", response_model=Recommendation, summary="Get a recommendation")
async def get_recommendation(
    recommendation_id: int,
    service: RecommendationService = Depends(get_recommendation_service),
):
    return await service.get_by_id(recommendation_id)


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message})


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


def create_app() -> FastAPI:
    """Build the API. Configuration is read here, once, so bad values fail at startup."""
    app = FastAPI(
        title="Music Recommendations",
        description="Submit songs, vote on them, and get ranked or score-weighted random picks.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.page_size = get_page_size()
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.include_router(router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


def main():
    """Entry point for the CLI command."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
