"""Custom exceptions for storefront services."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for storefront failures."""


class StoreError(StorefrontError):
    """Raised when a collection cannot be read or written."""

    def __init__(self, message: str, collection: str | None = None):
        super().__init__(message)
        self.collection = collection


class MissingDependencyError(StorefrontError):
    """Raised when a record an operation relies on does not exist."""


class ServiceUnavailableError(StorefrontError):
    """Raised when an external provider is not configured."""


class SmsDeliveryError(StorefrontError):
    """Raised when the SMS gateway rejects or fails a request."""

    def __init__(self, message: str, code: int | str | None = None):
        super().__init__(message)
        self.code = code


class ImageServiceError(StorefrontError):
    """Raised when the image host rejects or fails a request."""


class PasswordPolicyError(StorefrontError):
    """Raised when a new password does not meet the strength rules."""

    def __init__(self, errors: list[str]):
        super().__init__("Password must include: " + ", ".join(errors))
        self.errors = errors


class InvalidCredentialsError(StorefrontError):
    """Raised when an email/password pair does not match."""


class InvalidResetTokenError(StorefrontError):
    """Raised when a password reset token is unknown or expired."""


class OtpError(StorefrontError):
    """Raised when a one-time code is malformed, expired or exhausted."""

    def __init__(self, message: str, remaining_attempts: int | None = None):
        super().__init__(message)
        self.remaining_attempts = remaining_attempts
