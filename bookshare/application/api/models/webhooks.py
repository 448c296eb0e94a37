"""
Identity Provider Webhook Models
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    """
    Envelope of an identity-provider event.

    ``data`` is kept as a raw mapping; user events parse it into an
    IdentityProfile.
    """

    model_config = ConfigDict(extra="ignore")

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookResponse(BaseModel):
    success: bool
    error: str | None = None
    details: str | None = None
