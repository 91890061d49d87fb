"""Consistency layer for denormalized user and video data on a partitioned store."""

__version__ = "0.1.0"

__all__ = ["__version__"]
