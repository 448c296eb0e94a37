"""
User Service
============

Reads and updates the caller's own user record.

CACHING:
--------
Reads go through a per-process bounded TTL cache keyed by identity-provider
user id (30 seconds by default). An update drops the entry before doing
anything else and re-caches the stored result.

PROFILE RESOLUTION ON UPDATE:
-----------------------------
- email: provider primary -> provider first -> stored email -> 400
- name:  "first last" -> first -> username -> stored name -> "New User"
"""

from typing import Any

import orjson

from bookshare.application.api.models.users import UserResponse, UserUpdateRequest
from bookshare.core.exceptions import (
    AuthenticationRequiredError,
    InvalidRequestError,
    UserNotFoundError,
)
from bookshare.core.logging.logger import get_logger, log_stage
from bookshare.infrastructure.cache.keys import build_user_cache_key
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore
from bookshare.infrastructure.database.models import User
from bookshare.infrastructure.database.repositories import UserRepository
from bookshare.infrastructure.database.session import Database, store_errors
from bookshare.infrastructure.identity.provider import IdentityProfile, IdentityProvider

logger = get_logger(__name__)

DEFAULT_USER_NAME = "New User"


def resolve_display_name(profile: IdentityProfile, existing: User | None) -> str:
    if profile.first_name and profile.last_name:
        return f"{profile.first_name} {profile.last_name}"
    if profile.first_name:
        return profile.first_name
    if profile.username:
        return profile.username
    if existing is not None:
        return existing.name
    return DEFAULT_USER_NAME


class UserService:
    def __init__(
        self,
        database: Database,
        identity: IdentityProvider,
        cache: BoundedCacheStore,
        ttl_seconds: int = 30,
    ):
        self._db = database
        self._identity = identity
        self._cache = cache
        self._ttl = ttl_seconds

    async def get_current(self, clerk_id: str | None) -> dict[str, Any]:
        """
        The caller's user record.

        Raises:
            AuthenticationRequiredError: No caller
            UserNotFoundError: "User not found in database"
            PersistenceError: "Failed to fetch user" (with details)
        """
        if not clerk_id:
            raise AuthenticationRequiredError()

        cache_key = build_user_cache_key(clerk_id)
        cached = self._cache.read(cache_key)
        if cached is not None:
            log_stage(logger, "U.1", "User cache hit", level="debug")
            return orjson.loads(cached)

        async with self._db.session() as session:
            with store_errors("Failed to fetch user", expose=True):
                user = await UserRepository(session).get_by_clerk_id(clerk_id)
            if user is None:
                raise UserNotFoundError("User not found in database")
            result = self._serialize(user)

        self._store(cache_key, result)
        return result

    async def update_current(
        self, clerk_id: str | None, body: UserUpdateRequest
    ) -> dict[str, Any]:
        """
        Onboard or update the caller, syncing name and email from the provider.

        Raises:
            AuthenticationRequiredError: No caller
            UserNotFoundError: "User not found in Clerk"
            InvalidRequestError: No email could be determined
            IdentityProviderError: Provider unreachable
            PersistenceError: "Failed to update user" (with details)
        """
        if not clerk_id:
            raise AuthenticationRequiredError()

        cache_key = build_user_cache_key(clerk_id)
        self._cache.delete(cache_key)

        profile = await self._identity.get_user_profile(clerk_id)
        if profile is None:
            raise UserNotFoundError("User not found in Clerk")

        async with self._db.session() as session:
            with store_errors("Failed to update user", expose=True):
                users = UserRepository(session)
                existing = await users.get_by_clerk_id(clerk_id)

                email = profile.primary_email() or (existing.email if existing else None)
                if not email:
                    logger.warning("Unable to determine user email", stage="U.2")
                    raise InvalidRequestError("Unable to determine user email address")

                name = resolve_display_name(profile, existing)

                if existing is not None:
                    changes = {
                        "email": email,
                        "name": name,
                        "mobile_number": body.mobile_number or existing.mobile_number,
                        "location": body.location or existing.location,
                        "bio": body.bio or existing.bio,
                    }
                    if body.role is not None:
                        changes["role"] = body.role.value
                    user = await users.update(existing, changes)
                    await session.commit()
                else:
                    with store_errors("Failed to create user record", expose=True):
                        user = await users.create(
                            clerk_id,
                            email=email,
                            name=name,
                            role=body.role.value if body.role else None,
                            mobile_number=body.mobile_number or "",
                            location=body.location or "",
                            bio=body.bio or "",
                        )
                        await session.commit()

            logger.info(
                "User profile saved",
                stage="U.2",
                user_id=user.id,
                created=existing is None,
            )
            result = self._serialize(user)

        self._store(cache_key, result)
        return result

    def _store(self, cache_key: str, result: dict[str, Any]) -> None:
        self._cache.write(cache_key, orjson.dumps(result).decode("utf-8"), self._ttl)

    @staticmethod
    def _serialize(user: User) -> dict[str, Any]:
        return UserResponse.model_validate(user).model_dump(mode="json", by_alias=True)
