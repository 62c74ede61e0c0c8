"""
Custom Exception Classes for Site CMS

This module defines the error taxonomy used across the service layer.
Every error carries an HTTP status, a machine-readable error code and
optional details, and is rendered into the failure envelope by
``sitecms.exception_handlers``.
"""

import enum
from typing import Any

from fastapi import status


class ErrorCode(str, enum.Enum):
    """Machine-readable error codes returned as ``errorCode``."""

    # Authentication / authorization
    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"

    # Validation
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_CONTENT_INVALID = "VALIDATION_CONTENT_INVALID"
    VALIDATION_INVALID_STATUS_TRANSITION = "VALIDATION_INVALID_STATUS_TRANSITION"
    VALIDATION_INVALID_OPERATION = "VALIDATION_INVALID_OPERATION"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"

    # Resources
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    RESOURCE_VERSION_CONFLICT = "RESOURCE_VERSION_CONFLICT"

    # Infrastructure
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class CMSError(Exception):
    """Base exception class for all CMS errors"""

    default_error_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.default_error_code
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(CMSError):
    """Raised when authentication fails"""

    default_error_code = ErrorCode.AUTH_FAILED

    def __init__(self, message: str = "Authentication required", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class InvalidCredentialsError(AuthenticationError):
    """Raised for every login failure, whatever the cause"""

    default_error_code = ErrorCode.AUTH_INVALID_CREDENTIALS

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message)


class InvalidTokenError(AuthenticationError):
    """Raised when a token is missing, malformed or expired"""

    default_error_code = ErrorCode.AUTH_INVALID_TOKEN

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message)


class AuthorizationError(CMSError):
    """Raised when the principal may not act on the requested site or resource"""

    default_error_code = ErrorCode.AUTH_PERMISSION_DENIED

    def __init__(
        self, message: str = "You do not have permission to perform this action", required_role: str | None = None
    ):
        details = {"required_role": required_role} if required_role else {}
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, details=details)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(CMSError):
    """Base class for resource not found errors"""

    default_error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ContentTypeNotFoundError(ResourceNotFoundError):
    def __init__(self, content_type_id: Any | None = None):
        super().__init__(resource_type="Content type", resource_id=content_type_id)


class ContentNotFoundError(ResourceNotFoundError):
    def __init__(self, content_id: Any | None = None):
        super().__init__(resource_type="Content", resource_id=content_id)


class RevisionNotFoundError(ResourceNotFoundError):
    def __init__(self, revision_id: Any | None = None):
        super().__init__(resource_type="Revision", resource_id=revision_id)


class SubmissionNotFoundError(ResourceNotFoundError):
    def __init__(self, submission_id: Any | None = None):
        super().__init__(resource_type="Form submission", resource_id=submission_id)


class MediaNotFoundError(ResourceNotFoundError):
    def __init__(self, media_id: Any | None = None):
        super().__init__(resource_type="Media", resource_id=media_id)


class WebhookNotFoundError(ResourceNotFoundError):
    def __init__(self, webhook_id: Any | None = None):
        super().__init__(resource_type="Webhook", resource_id=webhook_id)


class WebsiteNotFoundError(ResourceNotFoundError):
    def __init__(self, site_id: Any | None = None):
        super().__init__(resource_type="Website", resource_id=site_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Any | None = None):
        super().__init__(resource_type="User", resource_id=user_id)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(CMSError):
    """Raised when input validation fails"""

    default_error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class ContentValidationError(ValidationError):
    """Raised when a payload does not satisfy its content type; carries one entry per failing field"""

    default_error_code = ErrorCode.VALIDATION_CONTENT_INVALID

    def __init__(self, errors: list[dict[str, str]], message: str = "Content validation failed"):
        self.errors = errors
        super().__init__(message=message, details={"errors": errors})


class InvalidStatusTransitionError(CMSError):
    """Raised when an invalid status transition is attempted"""

    default_error_code = ErrorCode.VALIDATION_INVALID_STATUS_TRANSITION

    def __init__(self, current_status: str, target_status: str, resource_type: str = "Content"):
        super().__init__(
            message=f"Cannot transition {resource_type} from '{current_status}' to '{target_status}'",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current_status, "target_status": target_status},
        )


class InvalidOperationError(CMSError):
    """Raised when an operation is not allowed on a resource in its current state"""

    default_error_code = ErrorCode.VALIDATION_INVALID_OPERATION

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConflictError(CMSError):
    """Raised when a write conflicts with existing state"""

    default_error_code = ErrorCode.RESOURCE_CONFLICT

    def __init__(self, message: str = "Resource conflict", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_409_CONFLICT, details=details)


class DuplicateResourceError(ConflictError):
    """Raised when attempting to create a duplicate resource"""

    default_error_code = ErrorCode.VALIDATION_DUPLICATE_RESOURCE

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class VersionConflictError(ConflictError):
    """Raised when an update carries a stale version token"""

    default_error_code = ErrorCode.RESOURCE_VERSION_CONFLICT

    def __init__(self, expected_version: int, current_version: int):
        super().__init__(
            message="Content was modified by another request",
            details={"expected_version": expected_version, "current_version": current_version},
        )


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class DatabaseError(CMSError):
    """Raised when a database operation fails; the message never leaks driver details"""

    default_error_code = ErrorCode.DATABASE_ERROR

    def __init__(self, message: str = "A database error occurred"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class RateLimitExceededError(CMSError):
    default_error_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str = "Too many requests, please try again later"):
        super().__init__(message=message, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
