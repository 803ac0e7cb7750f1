"""
Authentication module.

Provides Vault auth methods behind one interface and the token cache that
sits in front of them.

Components:
    - Token: Immutable token value with lease metadata
    - AuthStrategy: Interface implemented by each auth method
    - TokenAuth / AppRoleAuth / IAMAuth: Auth method implementations
    - TokenManager: Token caching, expiry checks and single-flight login
    - create_auth_strategy(): Selects an auth method from AuthConfig
"""

from typing import Any, Callable, Optional

from vault_broker.auth.token import Token
from vault_broker.auth.base import AuthStrategy
from vault_broker.auth.approle import AppRoleAuth
from vault_broker.auth.iam import CredentialSupplier, IAMAuth
from vault_broker.auth.manager import AuthState, TokenManager
from vault_broker.auth.token_auth import TokenAuth
from vault_broker.config import AUTH_TYPE_APPROLE, AUTH_TYPE_IAM, AuthConfig
from vault_broker.protocols import Transport


def create_auth_strategy(
    api: Transport,
    auth_config: AuthConfig,
    credential_supplier: Optional[CredentialSupplier] = None,
    clock: Optional[Callable[[], Any]] = None,
) -> AuthStrategy:
    """
    Build the auth method selected by ``auth_config.type``.

    Args:
        api: Transport for login requests
        auth_config: Validated auth configuration
        credential_supplier: AWS credential supplier (IAM only)
        clock: Returns the current UTC time

    Returns:
        AuthStrategy for the configured method
    """
    mount = auth_config.resolved_mount

    if auth_config.type == AUTH_TYPE_APPROLE:
        return AppRoleAuth(api, auth_config.config, mount=mount, clock=clock)
    if auth_config.type == AUTH_TYPE_IAM:
        return IAMAuth(
            api,
            auth_config.config,
            mount=mount,
            credential_supplier=credential_supplier,
            clock=clock,
        )
    return TokenAuth(api, auth_config.config, mount=mount, clock=clock)


__all__ = [
    "Token",
    "AuthStrategy",
    "TokenAuth",
    "AppRoleAuth",
    "IAMAuth",
    "AuthState",
    "TokenManager",
    "create_auth_strategy",
]
