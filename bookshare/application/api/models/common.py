"""
Shared API Model Base and Envelopes

All request and response bodies use camelCase on the wire while Python code
keeps snake_case attribute names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model with camelCase aliases.

    - ``populate_by_name``: accepts both ``ownerId`` and ``owner_id`` on input
    - ``from_attributes``: builds directly from ORM rows
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Error body returned by every failing endpoint.

    ``details`` is present only where the failing operation exposes the
    underlying cause (profile and webhook store errors).
    """

    error: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(default=None, description="Underlying cause, when exposed")


class SuccessResponse(BaseModel):
    success: bool = True
