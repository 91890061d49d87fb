"""Password hashing utilities.

Passwords are stored as bcrypt hashes produced by passlib. The cost factor is
fixed per deployment (``PASSWORD_HASH_ROUNDS``, default 12); hashes record
their own salt and cost, so changing the setting only affects new hashes.

Plaintext material travels in a :class:`PasswordBuffer`, a ``bytearray``
wrapper that can be zeroed once hashing or verification is done::

    with PasswordBuffer.from_value("password123") as password:
        password_hash = hasher.hash(password)
"""

from __future__ import annotations

from types import TracebackType
from typing import Optional, Type, Union

from passlib.context import CryptContext

DEFAULT_ROUNDS = 12


class PasswordBuffer:
    """Mutable holder for plaintext password bytes that can be wiped."""

    __slots__ = ("_data",)

    def __init__(self, data: Union[bytes, bytearray]) -> None:
        self._data = bytearray(data)

    @classmethod
    def from_value(cls, value: Union[str, bytes, bytearray]) -> PasswordBuffer:
        """Build a buffer from a UTF-8 string or raw bytes."""

        if isinstance(value, str):
            return cls(value.encode("utf-8"))
        return cls(value)

    def reveal(self) -> bytes:
        """Return the password bytes; the returned copy is not wiped by :meth:`clear`."""

        return bytes(self._data)

    def clear(self) -> None:
        """Overwrite the buffer with zeros and drop its contents."""

        for index in range(len(self._data)):
            self._data[index] = 0
        self._data.clear()

    @property
    def cleared(self) -> bool:
        return not self._data

    def __len__(self) -> int:
        return len(self._data)

    def __enter__(self) -> PasswordBuffer:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.clear()

    def __repr__(self) -> str:
        return "PasswordBuffer(<redacted>)"


PasswordInput = Union[str, bytes, bytearray, PasswordBuffer]


class PasswordHasher:
    """One-way salted password hashing with a configurable bcrypt cost."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: PasswordBuffer) -> str:
        """Hash ``password`` with a fresh salt."""

        return self._context.hash(password.reveal())

    def verify(self, password: PasswordBuffer, password_hash: str) -> bool:
        """Return ``True`` when ``password`` matches ``password_hash``."""

        return self._context.verify(password.reveal(), password_hash)


def as_password_buffer(password: PasswordInput) -> tuple[PasswordBuffer, bool]:
    """Wrap ``password`` in a buffer.

    Returns the buffer and whether it was created here, in which case the
    caller owns it and must clear it.
    """

    if isinstance(password, PasswordBuffer):
        return password, False
    return PasswordBuffer.from_value(password), True


__all__ = ["DEFAULT_ROUNDS", "PasswordBuffer", "PasswordHasher", "PasswordInput", "as_password_buffer"]
