"""User registration and login on top of single-partition primitives.

A user lives in two tables with different partition keys: ``users`` (by id) and
``user_credentials`` (by email). There is no transaction spanning both, so
registration is ordered and compensated instead:

1. write the ``users`` row (a user without credentials is a harmless orphan);
2. claim the email with a conditional insert into ``user_credentials``;
3. if the email is taken by another user, delete the user row and report ``False``;
   a retry whose email is already held by the same ``user_id`` reports ``True``;
4. on any unexpected failure, delete both rows, attach cleanup failures to the
   original exception as notes and re-raise it.

Uniqueness of emails therefore rests on the backend's linearizable
"insert if not exists"; there is no client-side locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import UUID

from reelbase.config.settings import Settings, get_settings
from reelbase.db.backend import IncompleteKeyError, StorageBackend
from reelbase.db.user_repository import CredentialsRepository, UserRepository
from reelbase.models.user import User, UserCredentials
from reelbase.utils import utc_now
from reelbase.utils.logging import get_logger
from reelbase.utils.passwords import PasswordBuffer, PasswordHasher, PasswordInput, as_password_buffer

logger = get_logger(__name__)


class CredentialsIntegrityError(RuntimeError):
    """Raised when stored credentials cannot be trusted.

    Covers verified credentials that reference a missing user and stored hashes that are
    not recognised. Registration never produces either state, so both point at a bug or
    manual data corruption. They are never reported as a failed login.
    """


class RegistrationState(str, Enum):
    """Lifecycle of a single registration attempt."""

    PENDING = "pending"
    PRIMARY_WRITTEN = "primary_written"
    CONDITIONAL_WRITE_ATTEMPTED = "conditional_write_attempted"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(slots=True)
class RegistrationAttempt:
    """Tracks how far a registration got and what its cleanup ran into."""

    user: User
    state: RegistrationState = RegistrationState.PENDING
    cleanup_errors: List[Exception] = field(default_factory=list)

    def advance(self, state: RegistrationState) -> None:
        logger.debug(
            "registration_state_changed",
            user_id=str(self.user.user_id),
            previous=self.state.value,
            state=state.value,
        )
        self.state = state


class AccountService:
    """Register users and verify their credentials."""

    def __init__(
        self,
        backend: StorageBackend,
        *,
        hasher: Optional[PasswordHasher] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        if hasher is None:
            hasher = PasswordHasher(rounds=(settings or get_settings()).password_hash_rounds)
        self._hasher = hasher
        self._users = UserRepository(backend)
        self._credentials = CredentialsRepository(backend)

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def register(self, user: User, password: PasswordInput) -> bool:
        """Create ``user`` and its credentials as one logical operation.

        Returns
        -------
        bool
            ``True`` when the user was created or already holds the email, ``False`` when
            the email belongs to another user.

        Raises
        ------
        IncompleteKeyError
            If ``user`` has no email; raised before anything is written.
        """

        if not user.email:
            raise IncompleteKeyError("An email is required to register a user.")

        buffer, owned = as_password_buffer(password)
        try:
            return self._register(user, buffer)
        finally:
            if owned:
                buffer.clear()

    def login(self, email: str, password: PasswordInput) -> Optional[User]:
        """Return the user owning ``email`` if ``password`` matches, else ``None``.

        Unknown emails and wrong passwords are indistinguishable to the caller. A stored
        hash that cannot be identified raises :class:`CredentialsIntegrityError`.
        """

        buffer, owned = as_password_buffer(password)
        try:
            credentials = self._credentials.find_by_email(email)
            if credentials is None or credentials.password_hash is None:
                logger.debug("login_rejected")
                return None
            try:
                matched = self._hasher.verify(buffer, credentials.password_hash)
            except ValueError as exc:
                raise CredentialsIntegrityError(
                    f"Stored password hash for {email!r} is not a recognised hash"
                ) from exc
            if not matched:
                logger.debug("login_rejected")
                return None
        finally:
            if owned:
                buffer.clear()

        user = self._users.find_by_id(credentials.user_id) if credentials.user_id else None
        if user is None:
            raise CredentialsIntegrityError(
                f"Credentials for {email!r} reference missing user {credentials.user_id}"
            )
        return user

    def get_user(self, user_id: UUID) -> Optional[User]:
        """Return a user by id."""

        return self._users.find_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        """Resolve a user through the credentials table, which is keyed by email."""

        credentials = self._credentials.find_by_email(email)
        if credentials is None or credentials.user_id is None:
            return None
        return self._users.find_by_id(credentials.user_id)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _register(self, user: User, password: PasswordBuffer) -> bool:
        record = user if user.created_at else user.model_copy(update={"created_at": utc_now()})
        attempt = RegistrationAttempt(record)

        try:
            self._users.insert(record)
            attempt.advance(RegistrationState.PRIMARY_WRITTEN)

            credentials = UserCredentials(
                email=record.email,
                password_hash=self._hasher.hash(password),
                user_id=record.user_id,
            )
            applied = self._credentials.insert_if_not_exists(credentials)
            attempt.advance(RegistrationState.CONDITIONAL_WRITE_ATTEMPTED)

            if not applied:
                holder = self._credentials.find_by_email(record.email)
                if holder is not None and holder.user_id == record.user_id:
                    attempt.advance(RegistrationState.COMMITTED)
                    logger.info("registration_already_committed", user_id=str(record.user_id))
                    return True
                self._users.delete_if_exists(record.user_id)
                attempt.advance(RegistrationState.ROLLED_BACK)
                logger.info("registration_rejected", reason="email_taken", user_id=str(record.user_id))
                return False
        except Exception as exc:
            self._compensate(attempt, exc)
            raise

        attempt.advance(RegistrationState.COMMITTED)
        logger.info("user_registered", user_id=str(record.user_id))
        return True

    def _compensate(self, attempt: RegistrationAttempt, error: Exception) -> None:
        """Undo both writes once, recording cleanup failures on ``error``."""

        user = attempt.user
        steps = (
            ("delete_user", lambda: self._users.delete_if_exists(user.user_id)),
            ("delete_credentials", lambda: self._credentials.delete_owned(user.email, user.user_id)),
        )
        for step, action in steps:
            try:
                action()
            except Exception as cleanup_error:
                attempt.cleanup_errors.append(cleanup_error)
                error.add_note(f"Compensating step {step} failed: {cleanup_error!r}")
                logger.warning(
                    "registration_compensation_failed",
                    step=step,
                    user_id=str(user.user_id),
                    error=repr(cleanup_error),
                )

        failed_in = attempt.state
        attempt.advance(RegistrationState.ROLLED_BACK)
        logger.error(
            "registration_failed",
            user_id=str(user.user_id),
            failed_in=failed_in.value,
            error=repr(error),
            cleanup_failures=len(attempt.cleanup_errors),
        )


__all__ = ["AccountService", "CredentialsIntegrityError", "RegistrationAttempt", "RegistrationState"]
