"""
Data models for backend search payloads.

This module defines Pydantic models for the records the media backends return:
encyclopedia search hits, resolved media URLs and music catalog tracks.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """A single result of an encyclopedia text search."""

    title: str = Field(..., description="Page or file title")
    snippet: str = Field(default="", description="Highlighted excerpt, may contain HTML")


class MediaInfo(BaseModel):
    """Media URLs resolved for a page or file."""

    thumbnail_url: Optional[str] = Field(None, description="Scaled thumbnail URL")
    original_url: Optional[str] = Field(None, description="Full size media URL")

    @property
    def best_url(self) -> Optional[str]:
        return self.thumbnail_url or self.original_url


class CatalogTrack(BaseModel):
    """Track metadata returned by the music catalog proxy."""

    track_id: str = Field(..., alias="trackId")
    track_name: Optional[str] = Field(None, alias="trackName")
    artist_name: Optional[str] = Field(None, alias="artistName")
    album_image: Optional[str] = Field(None, alias="albumImage")
    track_url: Optional[str] = Field(None, alias="spotifyUrl")

    model_config = {"populate_by_name": True}
