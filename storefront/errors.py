"""
Error taxonomy for the storefront.

Every error carries the HTTP status it maps to; ``storefront.main`` turns
them into ``{"message": ...}`` responses.
"""
from typing import Optional


class StorefrontError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(StorefrontError):
    status_code = 401
    default_message = "Not authorized"


class ForbiddenError(StorefrontError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Not found"


class ConflictError(StorefrontError):
    status_code = 409
    default_message = "Conflict"


class VerificationFailedError(StorefrontError):
    status_code = 400
    default_message = "Payment verification failed"


class UpstreamUnavailableError(StorefrontError):
    status_code = 503
    default_message = "Service temporarily unavailable. Please try again later."


class ConfigurationError(StorefrontError):
    status_code = 500
    default_message = "Server misconfigured"
