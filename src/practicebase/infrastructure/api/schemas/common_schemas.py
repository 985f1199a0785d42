"""Pydantic schemas shared by all endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body of every error response."""

    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human-readable error message")


class HealthResponse(BaseModel):
    """Response for the health check endpoint."""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


class DeletionResponse(BaseModel):
    """Marker returned after a record is deleted."""

    model_config = ConfigDict(populate_by_name=True)

    deleted_on: int = Field(
        ..., alias="_deletedOn", description="Deletion time in milliseconds since the epoch"
    )
