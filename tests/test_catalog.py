"""Tests for the catalog fan-out writer and partial updates."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from reelbase.db.backend import BackendError, IncompleteKeyError, RepositoryError
from reelbase.db.video_repository import (
    LATEST_VIDEOS_TABLE,
    USER_VIDEOS_TABLE,
    VIDEOS_BY_TAG_TABLE,
    VIDEOS_TABLE,
)
from reelbase.models.video import Video
from reelbase.services.catalog import CatalogService

ADDED = datetime(2024, 3, 5, 23, 30, tzinfo=timezone.utc)


def make_draft(**overrides):
    values = {
        "user_id": uuid4(),
        "name": "Accelerate: A NoSQL Original Series (TRAILER)",
        "location": "https://www.youtube.com/watch?v=LulWy8zmrog",
        "preview_image_location": "https://img.example.com/preview.png",
        "tags": {"apachecassandra", "nosql", "hybridcloud"},
        "added_date": ADDED,
    }
    values.update(overrides)
    return Video(**values)


class TestCreateVideo:
    """Fan-out of a new video to every read view."""

    def test_writes_every_view(self, catalog, backend):
        video = catalog.create_video(make_draft())

        assert backend.count(VIDEOS_TABLE) == 1
        assert backend.count(USER_VIDEOS_TABLE) == 1
        assert backend.count(LATEST_VIDEOS_TABLE) == 1
        assert backend.count(VIDEOS_BY_TAG_TABLE) == 3
        assert catalog.get_video(video.video_id).model_dump() == video.model_dump()

    def test_views_carry_identical_fields(self, catalog):
        video = catalog.create_video(make_draft())
        views = [
            catalog.videos_by_user(video.user_id).first(),
            catalog.latest_videos("20240305").first(),
            *[catalog.videos_by_tag(tag).first() for tag in sorted(video.tags)],
        ]

        for view in views:
            assert view.video_id == video.video_id
            assert view.added_date == video.added_date
            assert view.name == video.name
            assert view.preview_image_location == video.preview_image_location

    def test_tag_rows_use_added_date_as_tagged_date(self, catalog):
        video = catalog.create_video(make_draft(tags={"nosql"}))

        row = catalog.videos_by_tag("nosql").first()

        assert row.tagged_date == video.added_date
        assert row.user_id == video.user_id

    def test_fills_identifier_and_date(self, catalog):
        before = datetime.now(timezone.utc)

        video = catalog.create_video(make_draft(added_date=None))

        assert video.video_id is not None
        assert video.added_date >= before
        assert video.added_date.tzinfo is not None
        assert catalog.latest_videos(video.added_date).first().video_id == video.video_id

    def test_keeps_supplied_identifier(self, catalog):
        video_id = uuid4()

        assert catalog.create_video(make_draft(video_id=video_id)).video_id == video_id

    def test_naive_added_date_is_treated_as_utc(self, catalog):
        video = catalog.create_video(make_draft(added_date=datetime(2024, 3, 5, 23, 30)))

        assert video.added_date == ADDED

    def test_day_bucket_uses_utc(self, catalog):
        """An upload late in the evening east of UTC lands on the UTC day."""
        local = datetime(2024, 3, 6, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        video = catalog.create_video(make_draft(added_date=local))

        assert catalog.latest_videos("20240305").first().video_id == video.video_id
        assert catalog.latest_videos("20240306").first() is None

    def test_untagged_video_writes_no_tag_rows(self, catalog, backend):
        catalog.create_video(make_draft(tags=None))

        assert backend.count(VIDEOS_BY_TAG_TABLE) == 0
        assert backend.count(USER_VIDEOS_TABLE) == 1

    def test_user_id_required_before_any_write(self, faulty_backend):
        with pytest.raises(IncompleteKeyError):
            CatalogService(faulty_backend).create_video(make_draft(user_id=None))

        assert faulty_backend.calls == []

    def test_failed_batch_writes_nothing(self, faulty_backend, backend):
        faulty_backend.fail("batch_write", "*")

        with pytest.raises(BackendError):
            CatalogService(faulty_backend).create_video(make_draft())

        for table in (VIDEOS_TABLE, USER_VIDEOS_TABLE, LATEST_VIDEOS_TABLE, VIDEOS_BY_TAG_TABLE):
            assert backend.count(table) == 0

    def test_build_writes_order(self, catalog):
        video = make_draft(video_id=uuid4())

        tables = [table.name for table, _ in catalog.build_writes(video)]

        assert tables == ["videos", "user_videos", "latest_videos"] + ["videos_by_tag"] * 3


class TestUpdateVideo:
    """Sparse updates of the canonical row."""

    def test_only_supplied_fields_change(self, catalog):
        video = catalog.create_video(make_draft(description="original"))

        catalog.update_video(Video(video_id=video.video_id, name="Renamed"))

        stored = catalog.get_video(video.video_id)
        assert stored.name == "Renamed"
        assert stored.description == "original"
        assert stored.tags == video.tags
        assert stored.added_date == video.added_date

    def test_views_keep_previous_values(self, catalog):
        """Updates do not propagate to the denormalized views."""
        video = catalog.create_video(make_draft())

        catalog.update_video(Video(video_id=video.video_id, name="Renamed"))

        assert catalog.videos_by_user(video.user_id).first().name == video.name
        assert catalog.latest_videos("20240305").first().name == video.name
        assert catalog.videos_by_tag("nosql").first().name == video.name

    def test_video_id_required(self, catalog):
        with pytest.raises(IncompleteKeyError):
            catalog.update_video(Video(name="Renamed"))

    def test_template_without_fields(self, catalog):
        with pytest.raises(RepositoryError):
            catalog.update_video(Video(video_id=uuid4()))

    def test_update_of_missing_video_creates_partial_row(self, catalog):
        video_id = uuid4()

        catalog.update_video(Video(video_id=video_id, name="Orphan"))

        stored = catalog.get_video(video_id)
        assert stored.name == "Orphan"
        assert stored.user_id is None


class TestReads:
    """Partition reads over the views."""

    def test_user_videos_ordered_by_added_date(self, catalog):
        user_id = uuid4()
        for hours in (1, 3, 2):
            catalog.create_video(
                make_draft(user_id=user_id, name=f"video {hours}", added_date=ADDED - timedelta(hours=hours))
            )

        names = [row.name for row in catalog.videos_by_user(user_id)]

        assert names == ["video 3", "video 2", "video 1"]

    def test_latest_videos_accepts_dates(self, catalog):
        video = catalog.create_video(make_draft())

        assert catalog.latest_videos(ADDED.date()).first().video_id == video.video_id
        assert catalog.latest_videos(ADDED).first().video_id == video.video_id

    def test_latest_videos_rejects_malformed_day(self, catalog):
        with pytest.raises(ValueError):
            catalog.latest_videos("2024-03-05")

    def test_views_are_read_lazily(self, catalog):
        user_id = uuid4()
        listing = catalog.videos_by_user(user_id)

        catalog.create_video(make_draft(user_id=user_id))

        assert len(listing.all()) == 1

    def test_missing_video(self, catalog):
        assert catalog.get_video(uuid4()) is None
