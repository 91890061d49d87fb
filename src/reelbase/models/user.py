"""Pydantic models describing users and their login credentials."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import Field

from reelbase.models.base import ReelbaseModel


class User(ReelbaseModel):
    """Domain model representing a row in the ``users`` table.

    ``user_id`` is generated on construction when the caller does not supply one, so the
    identifier is known before anything is written. ``created_at`` is filled at registration.
    """

    user_id: UUID = Field(default_factory=uuid4)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class UserCredentials(ReelbaseModel):
    """Row in the ``user_credentials`` table, partitioned by email.

    The existence of a row for an email is what makes that email taken. ``user_id`` is a
    lookup reference to :class:`User`.
    """

    email: str = Field(min_length=1)
    password_hash: Optional[str] = None
    user_id: Optional[UUID] = None


__all__ = ["User", "UserCredentials"]
