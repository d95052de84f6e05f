"""
Error taxonomy for the storefront backend.

Every error carries the HTTP status it is rendered with; the API layer turns
any StorefrontError into a {"error": message} payload.
"""


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StorefrontError):
    """Missing product, cart line or order."""

    status_code = 404


class Unauthorized(StorefrontError):
    """Missing or invalid session for a protected resource."""

    status_code = 401


class Forbidden(StorefrontError):
    """Authenticated, but not allowed (e.g. non-admin on admin routes)."""

    status_code = 403


class Conflict(StorefrontError):
    """Duplicate wishlist add."""

    status_code = 409


class ValidationFailure(StorefrontError):
    """Malformed input that cannot be defaulted."""

    status_code = 400


class UpstreamFailure(StorefrontError):
    """The external store failed."""

    status_code = 500
