"""
Errors raised by the storefront API client.

HTTP failures are mapped back onto the same categories the API uses, so a
caller can tell "fix your input" from "try again later".
"""


class StorefrontError(Exception):
    """Base class. status_code is None for transport failures."""
    def __init__(self, message: str, status_code: int | None = None, code: str | None = None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


class ValidationError(StorefrontError):
    """400 / 422: the request itself was wrong. Never retried."""


class AuthorizationError(StorefrontError):
    """401 / 403: missing, expired or insufficient credentials."""


class NotFoundError(StorefrontError):
    """404."""


class ConflictError(StorefrontError):
    """409: e.g. a status transition the server policy forbids."""


class RateLimitedError(StorefrontError):
    """429."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class TransientIOError(StorefrontError):
    """Network failure or 5xx. Reads have already been retried when this surfaces."""
