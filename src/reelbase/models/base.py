"""Shared base model definitions for reelbase domain objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ReelbaseModel(BaseModel):
    """Base model configured for reelbase-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


__all__ = ["ReelbaseModel"]
