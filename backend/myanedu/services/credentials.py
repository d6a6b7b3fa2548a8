"""Password hashing utilities using bcrypt.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import bcrypt

from myanedu.config import BCRYPT_ROUNDS
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("db")

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Secure password hashing using bcrypt with automatic salt generation."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Raises:
            ValueError: If password is empty or longer than bcrypt accepts.
        """
        if not password:
            raise ValueError("Password cannot be empty")
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError("Password is too long")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Return True if password matches the stored bcrypt hash."""
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            # Malformed hash stored in the database
            log_with_context(logger, "WARNING", "Password hash could not be checked",
                             extra_data={"error": str(e)})
            return False


_default_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _default_hasher.verify(password, password_hash)
