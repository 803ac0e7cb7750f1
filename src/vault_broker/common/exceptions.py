"""
Exception types and error classification for vault_broker.

Provides:
- ErrorCategory enum for retry decisions
- Typed exception hierarchy for broker errors
- HTTP status classification
"""

from enum import Enum
from typing import List, Optional


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures a caller may retry
                   (e.g., network timeouts, 429/503 errors)
        AUTH: Authentication failures, recoverable by re-authenticating
              (e.g., rejected credentials, failed login request)
        PERMANENT: Failures that won't succeed on retry
                   (e.g., 404, bad configuration, malformed responses)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class VaultError(Exception):
    """
    Base exception for all broker errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether a caller could reasonably retry this error."""
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Configuration Errors (detected at construction, never retried)
# =============================================================================


class ConfigurationError(VaultError):
    """Invalid or missing configuration."""

    category = ErrorCategory.PERMANENT


class InvalidCredentialsError(ConfigurationError):
    """Explicit AWS credentials in the IAM auth config are malformed."""

    pass


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(VaultError):
    """Login failed: rejected credentials, transport failure or bad response."""

    category = ErrorCategory.AUTH


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(VaultError):
    """Network or timeout failure talking to the Vault server."""

    category = ErrorCategory.TRANSIENT


class VaultResponseError(TransportError):
    """Vault answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        errors: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code
        self.errors = errors or []
        # Instance attribute shadows the class default
        self.category = classify_http_status(status_code)


# =============================================================================
# Response Errors
# =============================================================================


class MalformedResponseError(VaultError):
    """A login or read response lacks the expected fields."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """
    Classify HTTP status code into error category.

    Vault answers 403 for bad or expired tokens, so 401 and 403 both map
    to AUTH.

    Args:
        status_code: HTTP response status

    Returns:
        Appropriate ErrorCategory
    """
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code in (401, 403):
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if status_code == 412:
        return ErrorCategory.TRANSIENT  # Performance standby not yet consistent

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT  # Client errors, won't fix with retry

    if status_code >= 500:
        return ErrorCategory.TRANSIENT  # Server errors, may recover

    return ErrorCategory.UNKNOWN
