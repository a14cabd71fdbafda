"""
Base schemas shared by request and response DTOs.
"""
from pydantic import BaseModel, ConfigDict


class StandardizedModel(BaseModel):  # type: ignore[misc]
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictModel(BaseModel):  # type: ignore[misc]
    """Strict base: forbid extras, validate defaults and assignments."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
