"""Utility helpers shared across reelbase modules."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def day_bucket(moment: date | datetime) -> str:
    """Format the UTC calendar day of ``moment`` as ``yyyymmdd``.

    Naive datetimes are interpreted as UTC.
    """

    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        moment = moment.astimezone(timezone.utc).date()
    return moment.strftime("%Y%m%d")


__all__ = ["day_bucket", "utc_now"]
