"""FastAPI dependencies for caller resolution and service access.

Services are built once by the application factory and live on
``app.state``.
"""

import json
from typing import Annotated, Any

from fastapi import Depends, Request

from practicebase.core.config import Settings
from practicebase.core.errors import RequestError
from practicebase.core.logging import get_logger
from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.entities.query_spec import QuerySpec
from practicebase.domain.services.identity_service import IdentityService
from practicebase.domain.services.record_service import RecordService

logger = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_identity_service(request: Request) -> IdentityService:
    """The identity service of the running application."""
    return request.app.state.identity_service


def get_record_service(request: Request) -> RecordService:
    """The record service of the running application."""
    return request.app.state.record_service


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Identity = Annotated[IdentityService, Depends(get_identity_service)]
Records = Annotated[RecordService, Depends(get_record_service)]


async def get_execution_context(
    request: Request, settings: AppSettings, identity: Identity
) -> ExecutionContext:
    """Resolve the caller from the access token and admin headers.

    Raises:
        CredentialError: If an access token is present but unknown.
    """
    token = request.headers.get(settings.auth_header)
    is_admin = settings.admin_header in request.headers
    return identity.current_caller(token, is_admin=is_admin)


CallerContext = Annotated[ExecutionContext, Depends(get_execution_context)]


def get_query_spec(request: Request, settings: AppSettings) -> QuerySpec:
    """Parse read options from the query string.

    Raises:
        RequestError: If ``where`` or ``load`` cannot be parsed.
    """
    return QuerySpec.from_query_params(
        dict(request.query_params), default_page_size=settings.default_page_size
    )


ReadSpec = Annotated[QuerySpec, Depends(get_query_spec)]


async def get_json_body(request: Request) -> Any:
    """Decode the request body; an empty body is an empty object.

    Raises:
        RequestError: If the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.info("Rejected request body", error=str(e))
        raise RequestError("Request body is not valid JSON") from e


JsonBody = Annotated[Any, Depends(get_json_body)]
