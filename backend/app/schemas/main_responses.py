"""
Response schemas for endpoints defined directly on the application.
"""

from pydantic import ConfigDict, Field

from .base import StrictModel


class HealthResponse(StrictModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Environment name")
    timestamp: str = Field(description="UTC ISO8601Z timestamp of the health response")


class HealthLiteResponse(StrictModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    """Response for lightweight health check endpoint."""

    status: str = Field(description="Health status (ok/error)")
