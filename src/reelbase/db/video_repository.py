"""Repositories for the `videos` table and its denormalized read views."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from reelbase.db.backend import RowSequence, StorageBackend, TableSpec
from reelbase.db.repositories import BaseRepository
from reelbase.models.video import LatestVideo, UserVideo, Video, VideoByTag

VIDEOS_TABLE = TableSpec(
    name="videos",
    partition_key=("video_id",),
    columns=(
        "video_id",
        "user_id",
        "name",
        "location",
        "location_type",
        "preview_image_location",
        "description",
        "tags",
        "added_date",
    ),
)

USER_VIDEOS_TABLE = TableSpec(
    name="user_videos",
    partition_key=("user_id",),
    clustering_key=("added_date", "video_id"),
    columns=("user_id", "added_date", "video_id", "name", "preview_image_location"),
)

LATEST_VIDEOS_TABLE = TableSpec(
    name="latest_videos",
    partition_key=("yyyymmdd",),
    clustering_key=("added_date", "video_id"),
    columns=("yyyymmdd", "added_date", "video_id", "user_id", "name", "preview_image_location"),
)

VIDEOS_BY_TAG_TABLE = TableSpec(
    name="videos_by_tag",
    partition_key=("tag",),
    clustering_key=("video_id",),
    columns=("tag", "video_id", "added_date", "user_id", "name", "preview_image_location", "tagged_date"),
)


class VideoRepository(BaseRepository[Video]):
    """Data access object for canonical video rows."""

    table = VIDEOS_TABLE
    model_type = Video

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def find_by_id(self, video_id: UUID) -> Optional[Video]:
        return self.get(video_id=video_id)


class UserVideoRepository(BaseRepository[UserVideo]):
    """Videos of one user, ordered by upload date."""

    table = USER_VIDEOS_TABLE
    model_type = UserVideo

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def list_for_user(self, user_id: UUID) -> RowSequence[UserVideo]:
        return self.find_partition(user_id=user_id)


class LatestVideoRepository(BaseRepository[LatestVideo]):
    """Videos uploaded on one UTC day."""

    table = LATEST_VIDEOS_TABLE
    model_type = LatestVideo

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def list_for_day(self, yyyymmdd: str) -> RowSequence[LatestVideo]:
        return self.find_partition(yyyymmdd=yyyymmdd)


class VideoByTagRepository(BaseRepository[VideoByTag]):
    """Videos carrying one tag."""

    table = VIDEOS_BY_TAG_TABLE
    model_type = VideoByTag

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def list_for_tag(self, tag: str) -> RowSequence[VideoByTag]:
        return self.find_partition(tag=tag)


__all__ = [
    "LATEST_VIDEOS_TABLE",
    "USER_VIDEOS_TABLE",
    "VIDEOS_BY_TAG_TABLE",
    "VIDEOS_TABLE",
    "LatestVideoRepository",
    "UserVideoRepository",
    "VideoByTagRepository",
    "VideoRepository",
]
