"""
Identity Provider Adapter (Clerk)

The identity provider is trusted to authenticate callers. Its edge middleware
stamps the authenticated user id on each request (X-User-ID); this adapter
reads it and fetches full profiles from the provider's backend API.

RETRY STRATEGY:
---------------
Profile lookups retry transport failures (connect errors, timeouts) with
exponential backoff and jitter. HTTP status errors are not retried.
"""

from typing import Any, Protocol, runtime_checkable

import httpx
from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from bookshare.core.config.constants import HEADER_USER_ID
from bookshare.core.config.settings import IdentitySettings
from bookshare.core.exceptions import IdentityProviderError
from bookshare.core.logging.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# PROFILE MODEL
# =============================================================================


class EmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    email_address: str | None = None


class IdentityProfile(BaseModel):
    """
    A user record as the identity provider reports it.

    Shared by the backend API responses and the ``data`` object of
    ``user.*`` webhook events, which have the same shape.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    email_addresses: list[EmailAddress] = Field(default_factory=list)
    primary_email_address_id: str | None = None

    def primary_email(self) -> str | None:
        """
        The designated primary address, else the first listed, else None.

        Entries without an address are skipped.
        """
        usable = [address for address in self.email_addresses if address.email_address]

        for address in usable:
            if address.id and address.id == self.primary_email_address_id:
                return address.email_address

        return usable[0].email_address if usable else None

    def full_name(self) -> str:
        """``"first last"`` with missing parts dropped; may be empty."""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# =============================================================================
# PROTOCOL
# =============================================================================


@runtime_checkable
class IdentityProvider(Protocol):
    """
    Protocol for identity provider adapters.

    Implementations:
    - ClerkIdentityProvider: production adapter
    - test fakes returning canned profiles
    """

    def resolve_caller(self, request: Request) -> str | None:
        """Identity-provider user id of the authenticated caller, if any."""
        ...

    async def get_user_profile(self, user_id: str) -> IdentityProfile | None:
        """
        Fetch a profile; None when the provider does not know the user.

        Raises:
            IdentityProviderError: The provider could not be reached
        """
        ...


# =============================================================================
# CLERK ADAPTER
# =============================================================================


class ClerkIdentityProvider:
    """
    Clerk backend API adapter.

    Usage:
        async with ClerkIdentityProvider(settings.identity) as identity:
            profile = await identity.get_user_profile("user_123")
    """

    def __init__(
        self,
        settings: IdentitySettings,
        client: httpx.AsyncClient | None = None,
        max_retries: int = 3,
        retry_base_delay: float = 0.2,
        retry_max_delay: float = 2.0,
    ):
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

    async def __aenter__(self) -> "ClerkIdentityProvider":
        if self._client is None:
            headers = {}
            if self._settings.CLERK_SECRET_KEY:
                headers["Authorization"] = f"Bearer {self._settings.CLERK_SECRET_KEY}"
            self._client = httpx.AsyncClient(
                base_url=self._settings.CLERK_API_URL,
                timeout=httpx.Timeout(self._settings.IDENTITY_TIMEOUT),
                headers=headers,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def resolve_caller(self, request: Request) -> str | None:
        user_id = request.headers.get(HEADER_USER_ID, "").strip()
        return user_id or None

    async def get_user_profile(self, user_id: str) -> IdentityProfile | None:
        """
        GET {CLERK_API_URL}/users/{user_id}

        Returns:
            The profile, or None on HTTP 404

        Raises:
            IdentityProviderError: Transport failure after retries, or any
                other non-2xx response
        """
        if self._client is None:
            raise IdentityProviderError("Identity provider client not started")

        try:
            data = await self._execute_with_retry(f"/users/{user_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            logger.error(
                "Identity provider returned an error",
                stage="ID.1",
                status_code=e.response.status_code,
            )
            raise IdentityProviderError(
                f"Identity provider returned HTTP {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error("Identity provider unreachable", stage="ID.1", error=str(e))
            raise IdentityProviderError.from_exception(e, "Identity provider unreachable") from e

        return IdentityProfile.model_validate(data)

    async def _execute_with_retry(self, path: str) -> dict[str, Any]:
        @retry(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential_jitter(
                initial=self._retry_base_delay,
                max=self._retry_max_delay,
            ),
            retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
            reraise=True,
        )
        async def _do_request() -> dict[str, Any]:
            response = await self._client.get(path)
            response.raise_for_status()
            return response.json()

        return await _do_request()
