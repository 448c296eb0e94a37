"""
API Exceptions

Errors that map onto an HTTP response. Each class carries the status code the
exception handlers in the application layer answer with, and its message is
the user-facing ``error`` text.
"""

from bookshare.core.exceptions.base import BookShareError


class APIError(BookShareError):
    """
    Base class for errors with an HTTP status.

    Attributes:
        status_code: HTTP status of the response
        public_details: Optional ``details`` text included in the response body
    """

    status_code: int = 500

    def __init__(self, message: str, public_details: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.public_details = public_details


class AuthenticationRequiredError(APIError):
    """No authenticated caller on a route that needs one."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class PermissionDeniedError(APIError):
    """
    Caller is authenticated but not allowed to perform the action.

    Raised for non-owners creating listings and for mutations of another
    user's book.
    """

    status_code = 403


class NotFoundError(APIError):
    status_code = 404


class BookNotFoundError(NotFoundError):
    def __init__(self, message: str = "Book not found", **kwargs):
        super().__init__(message, **kwargs)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found", **kwargs):
        super().__init__(message, **kwargs)


class InvalidRequestError(APIError):
    """Request is well-formed but cannot be served (e.g. no resolvable email)."""

    status_code = 400


class PersistenceError(APIError):
    """
    The relational store failed.

    Never retried. ``details`` carries the underlying driver message and is
    surfaced in the response body where the route exposes it.
    """

    status_code = 500


class IdentityProviderError(APIError):
    """The identity provider backend API could not be reached."""

    status_code = 502
