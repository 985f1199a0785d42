"""Authentication infrastructure components."""

from practicebase.infrastructure.auth.password_hasher import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    is_password_hash,
    verify_password,
)

__all__ = [
    "DUMMY_PASSWORD_HASH",
    "hash_password",
    "is_password_hash",
    "verify_password",
]
