"""Router for registration, login and sessions."""

from typing import Any

from fastapi import APIRouter, Response, status

from practicebase.infrastructure.api.dependencies import (
    CallerContext,
    Identity,
    JsonBody,
)
from practicebase.infrastructure.api.schemas import ERROR_RESPONSES

router = APIRouter(tags=["users"], responses=ERROR_RESPONSES)


@router.post("/register", summary="Register a user")
async def register(body: JsonBody, identity: Identity) -> dict[str, Any]:
    """Create a user and return it with a fresh ``accessToken``."""
    return identity.register(body)


@router.post("/login", summary="Log in")
async def login(body: JsonBody, identity: Identity) -> dict[str, Any]:
    """Verify credentials and return the user with a fresh ``accessToken``."""
    return identity.login(body)


@router.get("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def logout(context: CallerContext, identity: Identity) -> Response:
    """Close the caller's session."""
    identity.logout(context)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", summary="Current user")
async def me(context: CallerContext, identity: Identity) -> dict[str, Any]:
    """The caller's user record."""
    return identity.me(context)
