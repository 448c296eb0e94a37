"""
Identity Provider Test Factory

A fake identity provider with canned profiles, keyed by provider user id.
"""

from fastapi import Request

from bookshare.core.config.constants import HEADER_USER_ID
from bookshare.infrastructure.identity.provider import EmailAddress, IdentityProfile


def make_profile(
    user_id: str,
    first_name: str | None = "Ada",
    last_name: str | None = "Lovelace",
    username: str | None = None,
    emails: list[str] | None = None,
    primary_index: int = 0,
) -> IdentityProfile:
    """Build a profile; ``emails=[]`` produces a profile without addresses."""
    if emails is None:
        emails = [f"{user_id}@example.com"]

    addresses = [
        EmailAddress(id=f"idn_{i}", email_address=address) for i, address in enumerate(emails)
    ]
    return IdentityProfile(
        id=user_id,
        first_name=first_name,
        last_name=last_name,
        username=username,
        email_addresses=addresses,
        primary_email_address_id=f"idn_{primary_index}" if addresses else None,
    )


class FakeIdentityProvider:
    """Reads the caller from X-User-ID and serves profiles from a dict."""

    def __init__(self, profiles: dict[str, IdentityProfile] | None = None):
        self.profiles = dict(profiles or {})
        self.lookups: list[str] = []

    def add(self, profile: IdentityProfile) -> None:
        self.profiles[profile.id] = profile

    def resolve_caller(self, request: Request) -> str | None:
        return request.headers.get(HEADER_USER_ID) or None

    async def get_user_profile(self, user_id: str) -> IdentityProfile | None:
        self.lookups.append(user_id)
        return self.profiles.get(user_id)
