"""Music Recommendations MCP Server.

FastMCP server exposing the recommendation engine as tools.
Run: music-recommendations-mcp
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .api import configure_logging
from .core.models import RecommendationCreate
from .core.service import RecommendationService
from .db import close_db, init_db
from .repository import RecommendationRepository

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
RANDOM_READ = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=False, openWorldHint=False)
VOTE = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=False)

service = RecommendationService(RecommendationRepository())


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Initialize the database for the lifetime of the server."""
    configure_logging()
    await init_db()
    try:
        yield
    finally:
        await close_db()


mcp = FastMCP(
    "Music Recommendations",
    instructions="Recommend songs, vote on them, and get the most popular or a score-weighted random pick.",
    lifespan=lifespan,
)


# ─── Writes ──────────────────────────────────────────────────────────────────


@mcp.tool(annotations=VOTE)
async def recommend_song(name: str, media_link: str) -> dict:
    """Submit a new song recommendation.

    Args:
        name: Song title. Must not already be recommended.
        media_link: YouTube URL of the song.
    """
    candidate = RecommendationCreate(name=name, media_link=media_link)
    await service.insert(candidate)
    return {"created": True, "name": name, "summary": f"Recommended '{name}'."}


@mcp.tool(annotations=VOTE)
async def upvote_recommendation(recommendation_id: int) -> dict:
    """Raise a recommendation's score by one."""
    await service.upvote(recommendation_id)
    return {"id": recommendation_id, "summary": f"Upvoted recommendation {recommendation_id}."}


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True, idempotentHint=False, openWorldHint=False))
async def downvote_recommendation(recommendation_id: int) -> dict:
    """Lower a recommendation's score by one. It is deleted once its score reaches -5."""
    await service.downvote(recommendation_id)
    remaining = await service.repository.find(recommendation_id)
    if remaining is None:
        summary = f"Downvoted recommendation {recommendation_id}; it reached -5 and was removed."
    else:
        summary = f"Downvoted recommendation {recommendation_id}; score is now {remaining.score}."
    return {"id": recommendation_id, "removed": remaining is None, "summary": summary}


# ─── Reads ───────────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def list_recommendations() -> dict:
    """All recommendations in the order they were submitted."""
    recommendations = await service.get()
    return {
        "recommendations": [r.model_dump(by_alias=True) for r in recommendations],
        "count": len(recommendations),
    }


@mcp.tool(annotations=READ_ONLY)
async def top_recommendations(amount: int = 10) -> dict:
    """The highest-scored recommendations.

    Args:
        amount: Maximum number to return. Default 10.
    """
    recommendations = await service.get_top(amount)
    return {
        "recommendations": [r.model_dump(by_alias=True) for r in recommendations],
        "count": len(recommendations),
    }


@mcp.tool(annotations=RANDOM_READ)
async def random_recommendation() -> dict:
    """One recommendation drawn at random, favoring songs scored above 10."""
    recommendation = await service.get_random()
    return recommendation.model_dump(by_alias=True)


@mcp.tool(annotations=READ_ONLY)
async def get_recommendation(recommendation_id: int) -> dict:
    """Look up a single recommendation by id."""
    recommendation = await service.get_by_id(recommendation_id)
    return recommendation.model_dump(by_alias=True)


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
