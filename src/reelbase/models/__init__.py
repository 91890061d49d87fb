"""Domain models persisted by reelbase."""

from reelbase.models.user import User, UserCredentials
from reelbase.models.video import LatestVideo, UserVideo, Video, VideoByTag

__all__ = ["LatestVideo", "User", "UserCredentials", "UserVideo", "Video", "VideoByTag"]
