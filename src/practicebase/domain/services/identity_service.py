"""Identity service: registration, login and session resolution.

Users and sessions live in a protected collection store that is never
reachable through the data routes.
"""

import secrets
from typing import Any, Callable

from practicebase.core.errors import (
    AuthorizationError,
    ConflictError,
    CredentialError,
    RequestError,
)
from practicebase.core.logging import get_logger
from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.services.collection_store import CollectionStore
from practicebase.domain.services.query_engine import CREDENTIAL_FIELD
from practicebase.infrastructure.auth.password_hasher import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    verify_password,
)

logger = get_logger(__name__)

USERS = "users"
SESSIONS = "sessions"
TOKEN_FIELD = "accessToken"
PASSWORD_FIELD = "password"

LOGIN_MISMATCH = "Login or password don't match"


def generate_access_token() -> str:
    """Random URL-safe session token."""
    return secrets.token_urlsafe(32)


def _public(user: dict[str, Any]) -> dict[str, Any]:
    result = dict(user)
    result.pop(CREDENTIAL_FIELD, None)
    return result


def _filled(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class IdentityService:
    """Service for caller identities and their sessions."""

    def __init__(
        self,
        store: CollectionStore,
        identity_field: str = "email",
        token_factory: Callable[[], str] = generate_access_token,
    ) -> None:
        """Initialize the service.

        Args:
            store: Protected store holding ``users`` and ``sessions``.
            identity_field: User property used as the login name.
            token_factory: Generator of session access tokens.
        """
        self.store = store
        self.identity_field = identity_field
        self.token_factory = token_factory

    def hash(self, secret: str) -> str:
        """Opaque hash of ``secret``."""
        return hash_password(secret)

    def register(self, body: Any) -> dict[str, Any]:
        """Create a user and open a session for it.

        Returns:
            The user without credentials, plus ``accessToken``.

        Raises:
            RequestError: If the identity field or password is missing.
            ConflictError: If the identity is already taken.
        """
        if (
            not isinstance(body, dict)
            or not _filled(body.get(self.identity_field))
            or not _filled(body.get(PASSWORD_FIELD))
        ):
            raise RequestError("Missing fields")

        identity = body[self.identity_field]
        if self._find_users(identity):
            raise ConflictError(
                f"A user with the same {self.identity_field} already exists"
            )

        data = {key: value for key, value in body.items() if key != PASSWORD_FIELD}
        data[CREDENTIAL_FIELD] = hash_password(body[PASSWORD_FIELD])
        user = self.store.add(USERS, data)

        logger.info("User registered", user_id=user["_id"])
        return self._open_session(user)

    def login(self, body: Any) -> dict[str, Any]:
        """Verify credentials and open a session.

        Raises:
            CredentialError: If the identity is unknown or the password is wrong.
        """
        if not isinstance(body, dict) or not _filled(body.get(self.identity_field)):
            raise CredentialError(LOGIN_MISMATCH)

        users = self._find_users(body[self.identity_field])
        password = body.get(PASSWORD_FIELD)
        if not isinstance(password, str):
            raise CredentialError(LOGIN_MISMATCH)

        if len(users) != 1:
            # Unknown identity still pays for one hash verification
            logger.info("Login failed: user not found")
            verify_password(password, DUMMY_PASSWORD_HASH)
            raise CredentialError(LOGIN_MISMATCH)

        user = users[0]
        if not verify_password(password, user.get(CREDENTIAL_FIELD)):
            logger.info("Login failed", user_id=user["_id"])
            raise CredentialError(LOGIN_MISMATCH)

        logger.info("User logged in", user_id=user["_id"])
        return self._open_session(user)

    def logout(self, context: ExecutionContext) -> None:
        """Close the caller's session.

        Raises:
            CredentialError: If the caller has no session.
        """
        if not context.is_authenticated:
            raise CredentialError("User session does not exist")

        session = context.session
        if session is None:
            sessions = self._find(SESSIONS, {"userId": context.user_id})
            session = sessions[0] if sessions else None

        if session is not None:
            self.store.delete(SESSIONS, session["_id"])
            logger.info("User logged out", user_id=context.user_id)

    def me(self, context: ExecutionContext) -> dict[str, Any]:
        """The caller's user record without credentials.

        Raises:
            AuthorizationError: If the caller is anonymous.
        """
        if context.user is None:
            raise AuthorizationError()
        return _public(context.user)

    def current_caller(self, token: str | None, is_admin: bool = False) -> ExecutionContext:
        """Resolve the execution context for an access token.

        Args:
            token: Access token from the request, None when absent.
            is_admin: Whether the admin flag was set on the request.

        Raises:
            CredentialError: If a token is given but matches no session.
        """
        if token is None:
            return ExecutionContext.anonymous(is_admin=is_admin)

        sessions = [
            session
            for session in self._find(SESSIONS, {TOKEN_FIELD: token})
            if session.get(TOKEN_FIELD) == token
        ]
        user = self.store.fetch(USERS, sessions[0].get("userId")) if sessions else None
        if user is None:
            raise CredentialError("Invalid access token")

        logger.debug("Caller authenticated", user_id=user["_id"])
        return ExecutionContext(user=_public(user), session=sessions[0], is_admin=is_admin)

    def _open_session(self, user: dict[str, Any]) -> dict[str, Any]:
        token = self.token_factory()
        self.store.add(SESSIONS, {"userId": user["_id"], TOKEN_FIELD: token})
        result = _public(user)
        result[TOKEN_FIELD] = token
        return result

    def _find_users(self, identity: str) -> list[dict[str, Any]]:
        return self._find(USERS, {self.identity_field: identity})

    def _find(self, collection: str, match: dict[str, Any]) -> list[dict[str, Any]]:
        if not self.store.has_collection(collection):
            return []
        return self.store.query(collection, match)
