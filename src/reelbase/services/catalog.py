"""Video catalog writes and the denormalized views that serve its reads."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional, Union
from uuid import UUID, uuid4

from reelbase.db.backend import BatchWrite, IncompleteKeyError, RowSequence, StorageBackend
from reelbase.db.video_repository import (
    LatestVideoRepository,
    UserVideoRepository,
    VideoByTagRepository,
    VideoRepository,
)
from reelbase.models.video import LatestVideo, UserVideo, Video, VideoByTag
from reelbase.utils import day_bucket, utc_now
from reelbase.utils.logging import get_logger

logger = get_logger(__name__)

DayInput = Union[str, date, datetime]


class CatalogService:
    """Create videos across every read view and apply partial updates."""

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend
        self._videos = VideoRepository(backend)
        self._user_videos = UserVideoRepository(backend)
        self._latest_videos = LatestVideoRepository(backend)
        self._videos_by_tag = VideoByTagRepository(backend)

    # ------------------------------------------------------------------ #
    # Writes                                                             #
    # ------------------------------------------------------------------ #
    def create_video(self, draft: Video) -> Video:
        """Persist ``draft`` and its denormalized copies in one logged batch.

        ``video_id`` and ``added_date`` are filled when absent; the returned model is exactly
        what was written. The batch is all-or-nothing once it completes, but readers may see
        some views before others while it is in flight.
        """

        if draft.user_id is None:
            raise IncompleteKeyError("A user_id is required to create a video.")

        added_date = draft.added_date or utc_now()
        if added_date.tzinfo is None:
            added_date = added_date.replace(tzinfo=timezone.utc)
        video = draft.model_copy(update={"video_id": draft.video_id or uuid4(), "added_date": added_date})

        writes = self.build_writes(video)
        self._backend.batch_write(writes)
        logger.info(
            "video_created",
            video_id=str(video.video_id),
            user_id=str(video.user_id),
            rows=len(writes),
            tags=len(video.tags or ()),
        )
        return video

    def update_video(self, template: Video) -> None:
        """Set the non-``None`` fields of ``template`` on the canonical ``videos`` row.

        The denormalized views are not rewritten: a renamed video keeps its old name in
        ``user_videos``, ``latest_videos`` and ``videos_by_tag``.
        """

        if template.video_id is None:
            raise IncompleteKeyError("A video_id is required to update a video.")
        self._videos.update(template)
        logger.info("video_updated", video_id=str(template.video_id))

    def build_writes(self, video: Video) -> List[BatchWrite]:
        """Return the canonical row followed by one row per read view."""

        writes: List[BatchWrite] = [
            (self._videos.table, self._videos.to_row(video)),
            (self._user_videos.table, self._user_videos.to_row(to_user_video(video))),
            (self._latest_videos.table, self._latest_videos.to_row(to_latest_video(video))),
        ]
        for tag in sorted(video.tags or ()):
            writes.append((self._videos_by_tag.table, self._videos_by_tag.to_row(to_video_by_tag(video, tag))))
        return writes

    # ------------------------------------------------------------------ #
    # Reads                                                              #
    # ------------------------------------------------------------------ #
    def get_video(self, video_id: UUID) -> Optional[Video]:
        return self._videos.find_by_id(video_id)

    def videos_by_user(self, user_id: UUID) -> RowSequence[UserVideo]:
        return self._user_videos.list_for_user(user_id)

    def latest_videos(self, day: Optional[DayInput] = None) -> RowSequence[LatestVideo]:
        """List the videos added on ``day`` (UTC), today by default."""

        if day is None:
            bucket = day_bucket(utc_now())
        elif isinstance(day, str):
            bucket = day
        else:
            bucket = day_bucket(day)
        if len(bucket) != 8 or not bucket.isdigit():
            raise ValueError(f"Day bucket must be formatted as yyyymmdd, got {bucket!r}")
        return self._latest_videos.list_for_day(bucket)

    def videos_by_tag(self, tag: str) -> RowSequence[VideoByTag]:
        return self._videos_by_tag.list_for_tag(tag)


def to_user_video(video: Video) -> UserVideo:
    return UserVideo(
        user_id=video.user_id,
        added_date=video.added_date,
        video_id=video.video_id,
        name=video.name,
        preview_image_location=video.preview_image_location,
    )


def to_latest_video(video: Video) -> LatestVideo:
    return LatestVideo(
        yyyymmdd=day_bucket(video.added_date),
        added_date=video.added_date,
        video_id=video.video_id,
        user_id=video.user_id,
        name=video.name,
        preview_image_location=video.preview_image_location,
    )


def to_video_by_tag(video: Video, tag: str) -> VideoByTag:
    return VideoByTag(
        tag=tag,
        video_id=video.video_id,
        added_date=video.added_date,
        user_id=video.user_id,
        name=video.name,
        preview_image_location=video.preview_image_location,
        tagged_date=video.added_date,
    )


__all__ = ["CatalogService", "DayInput", "to_latest_video", "to_user_video", "to_video_by_tag"]
