"""Core PracticeBase utilities.

This module exports core utilities for use throughout the application.
"""

from practicebase.core.config import Settings, get_settings
from practicebase.core.errors import (
    AuthorizationError,
    ConflictError,
    CredentialError,
    NotFoundError,
    RequestError,
    ServiceError,
)
from practicebase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "AuthorizationError",
    "ConflictError",
    "CredentialError",
    "NotFoundError",
    "RequestError",
    "ServiceError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "clear_context",
]
