"""API Schemas for request/response documentation."""

from practicebase.infrastructure.api.schemas.common_schemas import (
    DeletionResponse,
    ErrorResponse,
    HealthResponse,
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed request"},
    401: {"model": ErrorResponse, "description": "Authentication required"},
    403: {"model": ErrorResponse, "description": "Insufficient privileges"},
    404: {"model": ErrorResponse, "description": "Collection or record not found"},
}

__all__ = [
    "DeletionResponse",
    "ERROR_RESPONSES",
    "ErrorResponse",
    "HealthResponse",
]
