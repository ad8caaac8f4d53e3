"""Typed application errors.

Routers and services raise these; ``libs.common.error_handler`` turns them
into JSON responses of the form ``{"code": ..., "detail": ...}``.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that are safe to show to API clients."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class AuthenticationFailed(AppError):
    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Could not validate credentials"


class PermissionDenied(AppError):
    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Insufficient privileges"


class NotFound(AppError):
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class BusinessRuleViolation(AppError):
    status_code = 400
    default_code = "BUSINESS_RULE_VIOLATION"
    default_message = "Operation not allowed"


class ExternalServiceError(AppError):
    status_code = 502
    default_code = "EXTERNAL_SERVICE_ERROR"
    default_message = "Upstream service failed"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONCURRENT_UPDATE"
    default_message = "The resource was changed by another request, please retry"
