"""Pydantic models for the video catalog and its denormalized views."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Set
from uuid import UUID

from pydantic import Field

from reelbase.models.base import ReelbaseModel


class Video(ReelbaseModel):
    """Canonical catalog entity, a row in the ``videos`` table.

    The same model serves as creation draft, persisted record and partial update template:
    ``None`` means "not set" and is never written to storage.
    """

    video_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    location: Optional[str] = None
    location_type: Optional[int] = None
    preview_image_location: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[Set[str]] = None
    added_date: Optional[datetime] = None


class UserVideo(ReelbaseModel):
    """Row in ``user_videos``: a user's uploads ordered by date."""

    user_id: UUID
    added_date: datetime
    video_id: UUID
    name: Optional[str] = None
    preview_image_location: Optional[str] = None


class LatestVideo(ReelbaseModel):
    """Row in ``latest_videos``: uploads bucketed by UTC day (``yyyymmdd``)."""

    yyyymmdd: str = Field(pattern=r"^\d{8}$")
    added_date: datetime
    video_id: UUID
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    preview_image_location: Optional[str] = None


class VideoByTag(ReelbaseModel):
    """Row in ``videos_by_tag``, one per tag of a video.

    ``tagged_date`` starts equal to ``added_date`` but is tracked separately so a later
    re-tag can move it independently.
    """

    tag: str = Field(min_length=1)
    video_id: UUID
    added_date: Optional[datetime] = None
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    preview_image_location: Optional[str] = None
    tagged_date: Optional[datetime] = None


__all__ = ["LatestVideo", "UserVideo", "Video", "VideoByTag"]
