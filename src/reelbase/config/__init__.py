"""Configuration package for reelbase."""

from reelbase.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
