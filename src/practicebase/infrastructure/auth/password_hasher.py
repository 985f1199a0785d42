"""Password hashing using Argon2.

Stored credentials are Argon2id hashes. Seed data may carry plain
passwords, which are hashed once when the data is loaded.
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ARGON2_PREFIX = "$argon2"

_hasher = PasswordHasher()

# Verified against on unknown-user logins so both paths cost one hash
DUMMY_PASSWORD_HASH = _hasher.hash("practicebase-dummy-password")


def hash_password(password: str) -> str:
    """Hash a password using Argon2id.

    Example:
        >>> hash_password("123456").startswith("$argon2id$")
        True
    """
    return _hasher.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    """Check a password against a stored hash.

    Returns False for a missing or malformed hash instead of raising.

    Example:
        >>> hashed = hash_password("123456")
        >>> verify_password("123456", hashed)
        True
        >>> verify_password("654321", hashed)
        False
    """
    if not hashed:
        return False
    try:
        return _hasher.verify(hashed, password)
    except (VerificationError, InvalidHashError):
        return False


def is_password_hash(value: str) -> bool:
    """Whether ``value`` already is an Argon2 hash."""
    return value.startswith(ARGON2_PREFIX)
