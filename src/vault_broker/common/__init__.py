"""
Shared infrastructure for vault_broker: exceptions and logging.
"""

from vault_broker.common.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    InvalidCredentialsError,
    MalformedResponseError,
    TransportError,
    VaultError,
    VaultResponseError,
    classify_http_status,
)
from vault_broker.common.logging import (
    LoggedClass,
    get_logger,
    log_exception,
    log_with_context,
    logged_operation,
)

__all__ = [
    "ErrorCategory",
    "VaultError",
    "ConfigurationError",
    "InvalidCredentialsError",
    "AuthenticationError",
    "TransportError",
    "VaultResponseError",
    "MalformedResponseError",
    "classify_http_status",
    "LoggedClass",
    "get_logger",
    "log_exception",
    "log_with_context",
    "logged_operation",
]
