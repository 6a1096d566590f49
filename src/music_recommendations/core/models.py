"""Pydantic data models shared by the engine and both transports."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

YOUTUBE_LINK_PATTERN = r"^https://(www\.)?youtu(\.be|be\.com)/"


class ScoreFilter(str, Enum):
    """Score predicate applied by filtered listings."""

    GT = "gt"
    LTE = "lte"


class RecommendationCreate(BaseModel):
    """A candidate recommendation as submitted by a user."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    media_link: str = Field(alias="mediaLink", pattern=YOUTUBE_LINK_PATTERN)


class Recommendation(BaseModel):
    """A stored recommendation."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    name: str
    media_link: str = Field(alias="mediaLink")
    score: int = 0
