"""Tests for password buffers and bcrypt hashing."""

from reelbase.utils.passwords import PasswordBuffer, PasswordHasher, as_password_buffer


class TestPasswordBuffer:
    def test_clear_wipes_contents(self):
        buffer = PasswordBuffer.from_value("password123")

        buffer.clear()

        assert buffer.cleared
        assert len(buffer) == 0
        assert buffer.reveal() == b""

    def test_context_manager_clears_on_exit(self):
        with PasswordBuffer.from_value(b"password123") as buffer:
            assert buffer.reveal() == b"password123"

        assert buffer.cleared

    def test_repr_hides_secret(self):
        assert "password123" not in repr(PasswordBuffer.from_value("password123"))

    def test_as_password_buffer_ownership(self):
        """Strings are wrapped and owned; existing buffers are passed through."""
        wrapped, owned = as_password_buffer("password123")
        assert owned is True
        assert wrapped.reveal() == b"password123"

        existing = PasswordBuffer.from_value("password123")
        same, owned = as_password_buffer(existing)
        assert same is existing
        assert owned is False


class TestPasswordHasher:
    def test_verify_round_trip(self, hasher):
        password_hash = hasher.hash(PasswordBuffer.from_value("password123"))

        assert hasher.verify(PasswordBuffer.from_value("password123"), password_hash)
        assert not hasher.verify(PasswordBuffer.from_value("secret123"), password_hash)

    def test_hashes_are_salted(self, hasher):
        first = hasher.hash(PasswordBuffer.from_value("password123"))
        second = hasher.hash(PasswordBuffer.from_value("password123"))

        assert first != second

    def test_cost_factor_is_recorded_in_hash(self):
        password_hash = PasswordHasher(rounds=5).hash(PasswordBuffer.from_value("password123"))

        assert password_hash.split("$")[2] == "05"

    def test_hash_from_other_cost_still_verifies(self, hasher):
        """Changing the configured cost does not invalidate stored hashes."""
        old_hash = PasswordHasher(rounds=5).hash(PasswordBuffer.from_value("password123"))

        assert hasher.verify(PasswordBuffer.from_value("password123"), old_hash)
