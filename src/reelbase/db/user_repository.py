"""Repositories for the `users` and `user_credentials` tables."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from reelbase.db.backend import StorageBackend, TableSpec
from reelbase.db.repositories import BaseRepository
from reelbase.models.user import User, UserCredentials

USERS_TABLE = TableSpec(
    name="users",
    partition_key=("user_id",),
    columns=("user_id", "first_name", "last_name", "email", "created_at"),
)

CREDENTIALS_TABLE = TableSpec(
    name="user_credentials",
    partition_key=("email",),
    columns=("email", "password_hash", "user_id"),
)


class UserRepository(BaseRepository[User]):
    """Data access object for user identity rows."""

    table = USERS_TABLE
    model_type = User

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        return self.get(user_id=user_id)

    def delete_if_exists(self, user_id: UUID) -> bool:
        """Remove a user row; a no-op when it is already gone."""

        return self.delete(user_id=user_id, if_exists=True)


class CredentialsRepository(BaseRepository[UserCredentials]):
    """Data access object for credentials, the authority on which emails are taken."""

    table = CREDENTIALS_TABLE
    model_type = UserCredentials

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)

    def find_by_email(self, email: str) -> Optional[UserCredentials]:
        return self.get(email=email)

    def insert_if_not_exists(self, credentials: UserCredentials) -> bool:
        """Claim ``credentials.email``; returns ``False`` when the email is already taken."""

        return self.insert(credentials, if_not_exists=True)

    def delete_owned(self, email: str, user_id: UUID) -> bool:
        """Remove the credentials for ``email`` only if they point at ``user_id``."""

        return self.delete(email=email, if_values={"user_id": user_id})


__all__ = ["CREDENTIALS_TABLE", "USERS_TABLE", "CredentialsRepository", "UserRepository"]
