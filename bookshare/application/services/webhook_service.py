"""
Webhook Service
===============

Mirrors identity-provider user records into the relational store.

``user.created`` and ``user.updated`` upsert the user by identity-provider id;
every other event type is acknowledged and ignored. Signature headers must be
present, but their cryptographic verification is left to the edge.
"""

from collections.abc import Mapping

from bookshare.application.api.models.webhooks import WebhookEvent
from bookshare.core.config.constants import (
    PLACEHOLDER_EMAIL_DOMAIN,
    WEBHOOK_EVENT_USER_CREATED,
    WEBHOOK_EVENT_USER_UPDATED,
    WEBHOOK_SIGNATURE_HEADERS,
)
from bookshare.core.exceptions import InvalidRequestError
from bookshare.core.logging.logger import get_logger
from bookshare.infrastructure.database.repositories import UserRepository
from bookshare.infrastructure.database.session import Database, store_errors
from bookshare.infrastructure.identity.provider import IdentityProfile

logger = get_logger(__name__)

USER_SYNC_EVENTS = frozenset({WEBHOOK_EVENT_USER_CREATED, WEBHOOK_EVENT_USER_UPDATED})
DEFAULT_WEBHOOK_USER_NAME = "User"


def has_signature_headers(headers: Mapping[str, str]) -> bool:
    """True when every delivery signature header is present and non-empty."""
    return all(headers.get(name) for name in WEBHOOK_SIGNATURE_HEADERS)


def placeholder_email(user_id: str) -> str:
    return f"user_{user_id}@{PLACEHOLDER_EMAIL_DOMAIN}"


class WebhookService:
    def __init__(self, database: Database):
        self._db = database

    async def handle(self, event: WebhookEvent) -> bool:
        """
        Apply one event.

        Returns:
            bool: True when the event changed a user record

        Raises:
            InvalidRequestError: User event without ``data.id``
            PersistenceError: "Database error during user sync" (with details)
            pydantic.ValidationError: Malformed user payload
        """
        logger.info("Webhook received", stage="W.1", event_type=event.type)

        if event.type not in USER_SYNC_EVENTS:
            return False

        profile = IdentityProfile.model_validate(event.data)
        if not profile.id:
            raise InvalidRequestError("No user ID provided")

        email = profile.primary_email()
        if not email:
            logger.warning(
                "No email address on webhook user, using placeholder",
                stage="W.2",
                clerk_id=profile.id,
            )
            email = placeholder_email(profile.id)

        name = profile.full_name() or DEFAULT_WEBHOOK_USER_NAME

        async with self._db.session() as session:
            with store_errors("Database error during user sync", expose=True, clerk_id=profile.id):
                await UserRepository(session).upsert_from_identity(profile.id, email, name)
                await session.commit()

        logger.info("User synced", stage="W.3", clerk_id=profile.id)
        return True
