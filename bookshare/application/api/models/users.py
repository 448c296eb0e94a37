"""
User Profile API Models
"""

from datetime import datetime

from pydantic import Field

from bookshare.application.api.models.common import CamelModel
from bookshare.core.config.constants import UserRole


class UserResponse(CamelModel):
    id: str
    clerk_id: str
    name: str
    email: str
    role: UserRole | None = None
    mobile_number: str
    location: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class UserUpdateRequest(CamelModel):
    """
    Onboarding / profile update.

    Omitted fields keep their stored values.
    """

    role: UserRole | None = None
    mobile_number: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=255)
    bio: str | None = None
