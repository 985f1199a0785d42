"""Per-request caller context."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExecutionContext:
    """Identity and privilege flags of the caller of one request.

    Attributes:
        user: The caller's user record (without credentials), None when anonymous.
        session: The resolved session record, None when anonymous.
        is_admin: Bypasses failed action rules but not property redaction.
    """

    user: dict[str, Any] | None = None
    session: dict[str, Any] | None = None
    is_admin: bool = False

    @property
    def user_id(self) -> str | None:
        """The caller's identity, or None for anonymous callers."""
        if self.user is None:
            return None
        return self.user.get("_id")

    @property
    def is_authenticated(self) -> bool:
        """Whether a caller identity is present."""
        return self.user is not None

    @classmethod
    def anonymous(cls, is_admin: bool = False) -> "ExecutionContext":
        """Context for a caller without a session."""
        return cls(user=None, session=None, is_admin=is_admin)
