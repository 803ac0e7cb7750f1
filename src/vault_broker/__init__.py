"""
Client-side credential broker for HashiCorp Vault.

Authenticates with a token, AppRole or AWS IAM, keeps the resulting Vault
token fresh, and uses it for generic secret reads and writes.

Usage:
    from vault_broker import VaultConfig, create_client

    async with create_client(VaultConfig.from_env()) as client:
        lease = await client.read("secret/app")
        password = lease["password"]
"""

from vault_broker.auth import (
    AppRoleAuth,
    AuthState,
    AuthStrategy,
    IAMAuth,
    Token,
    TokenAuth,
    TokenManager,
    create_auth_strategy,
)
from vault_broker.api_client import VaultApiClient
from vault_broker.client import VaultClient
from vault_broker.common.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    InvalidCredentialsError,
    MalformedResponseError,
    TransportError,
    VaultError,
    VaultResponseError,
)
from vault_broker.config import (
    AppRoleAuthConfig,
    AuthConfig,
    AWSCredentials,
    IAMAuthConfig,
    TokenAuthConfig,
    VaultConfig,
    load_config,
)
from vault_broker.lease import Lease
from vault_broker.registry import ClientRegistry, create_client

__version__ = "1.0.0"

__all__ = [
    # Client
    "VaultClient",
    "VaultApiClient",
    "ClientRegistry",
    "create_client",
    # Values
    "Token",
    "Lease",
    # Auth
    "AuthStrategy",
    "TokenAuth",
    "AppRoleAuth",
    "IAMAuth",
    "AuthState",
    "TokenManager",
    "create_auth_strategy",
    # Config
    "VaultConfig",
    "AuthConfig",
    "TokenAuthConfig",
    "AppRoleAuthConfig",
    "IAMAuthConfig",
    "AWSCredentials",
    "load_config",
    # Errors
    "ErrorCategory",
    "VaultError",
    "ConfigurationError",
    "InvalidCredentialsError",
    "AuthenticationError",
    "TransportError",
    "VaultResponseError",
    "MalformedResponseError",
]
