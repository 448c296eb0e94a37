"""
FastAPI Dependency Injection Module
===================================

Every long-lived component (database, cache service, services, identity
adapter, metrics) is built ONCE in the application lifespan and stored on
``app.state``. The functions below hand those singletons to route handlers.

Example:
    @router.get("/api/books")
    async def list_books(listings: ListingServiceDep):
        ...

Tests can replace any of these by assigning a different object to
``app.state`` or by using ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from bookshare.application.services.book_service import BookService
from bookshare.application.services.listing_service import ListingService
from bookshare.application.services.user_service import UserService
from bookshare.application.services.webhook_service import WebhookService
from bookshare.core.config.settings import Settings, get_settings
from bookshare.infrastructure.cache.cache_manager import CacheService
from bookshare.infrastructure.database.session import Database
from bookshare.infrastructure.identity.provider import IdentityProvider
from bookshare.infrastructure.monitoring.metrics_collector import MetricsCollector


def _from_state(request: Request, name: str):
    """
    Fetch a component from application state.

    Raises:
        RuntimeError: The lifespan has not run (or did not build the component)
    """
    component = getattr(request.app.state, name, None)
    if component is None:
        raise RuntimeError(f"{name} is not initialized; was the application lifespan started?")
    return component


def get_database(request: Request) -> Database:
    return _from_state(request, "database")


def get_cache_service(request: Request) -> CacheService:
    return _from_state(request, "cache_service")


def get_listing_service(request: Request) -> ListingService:
    return _from_state(request, "listing_service")


def get_book_service(request: Request) -> BookService:
    return _from_state(request, "book_service")


def get_user_service(request: Request) -> UserService:
    return _from_state(request, "user_service")


def get_webhook_service(request: Request) -> WebhookService:
    return _from_state(request, "webhook_service")


def get_identity_provider(request: Request) -> IdentityProvider:
    return _from_state(request, "identity")


def get_metrics(request: Request) -> MetricsCollector:
    return _from_state(request, "metrics")


def get_caller_id(request: Request) -> str | None:
    """
    Identity-provider id of the authenticated caller.

    None when the request is anonymous; services decide whether that is an
    error (401) for the operation at hand.
    """
    identity = get_identity_provider(request)
    return identity.resolve_caller(request)


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
DatabaseDep = Annotated[Database, Depends(get_database)]
CacheServiceDep = Annotated[CacheService, Depends(get_cache_service)]
ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
BookServiceDep = Annotated[BookService, Depends(get_book_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
WebhookServiceDep = Annotated[WebhookService, Depends(get_webhook_service)]
MetricsDep = Annotated[MetricsCollector, Depends(get_metrics)]
CallerIdDep = Annotated[str | None, Depends(get_caller_id)]
