"""
Client construction and named-client registry.

create_client() returns a fully wired VaultClient owned by the caller.
Applications that want to share clients by name create one ClientRegistry
at startup and close it at shutdown; there is no module-level instance.
"""

import logging
from typing import Any, Callable, Dict, Optional

from vault_broker.api_client import VaultApiClient
from vault_broker.auth import TokenManager, create_auth_strategy
from vault_broker.auth.iam import CredentialSupplier
from vault_broker.client import VaultClient
from vault_broker.common.exceptions import ConfigurationError
from vault_broker.common.logging import get_logger, log_with_context
from vault_broker.config import VaultConfig
from vault_broker.protocols import Transport

logger = get_logger(__name__)


def create_client(
    config: VaultConfig,
    api: Optional[Transport] = None,
    credential_supplier: Optional[CredentialSupplier] = None,
    clock: Optional[Callable[[], Any]] = None,
) -> VaultClient:
    """
    Build a VaultClient from configuration.

    Args:
        config: Validated client configuration
        api: Transport to use; a VaultApiClient owned by the client is
            created when omitted
        credential_supplier: AWS credential supplier for IAM auth
        clock: Returns the current UTC time

    Returns:
        VaultClient with its own TokenManager
    """
    owns_api = api is None
    if api is None:
        api = VaultApiClient(
            config.url,
            api_version=config.api_version,
            timeout_seconds=config.timeout_seconds,
        )

    strategy = create_auth_strategy(
        api,
        config.auth,
        credential_supplier=credential_supplier,
        clock=clock,
    )
    manager = TokenManager(
        strategy,
        refresh_buffer_seconds=config.refresh_buffer_seconds,
        clock=clock,
    )
    return VaultClient(api, manager, namespace=config.namespace, owns_api=owns_api)


class ClientRegistry:
    """
    Named VaultClient instances with an explicit lifecycle.

    Usage:
        registry = ClientRegistry()
        registry.boot("main", VaultConfig.from_env())
        ...
        lease = await registry.get("main").read("secret/app")
        ...
        await registry.aclose()
    """

    def __init__(self, factory: Callable[..., VaultClient] = create_client):
        self._factory = factory
        self._clients: Dict[str, VaultClient] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def boot(
        self, name: str, config: Optional[VaultConfig] = None, **kwargs: Any
    ) -> VaultClient:
        """
        Create and register a client under name.

        Raises:
            ConfigurationError: If config is missing or name is already booted
        """
        if config is None:
            raise ConfigurationError("Config must be provided to boot a client")
        if name in self._clients:
            raise ConfigurationError(f"Client '{name}' is already booted")

        client = self._factory(config, **kwargs)
        self._clients[name] = client
        log_with_context(
            logger,
            logging.DEBUG,
            "Booted Vault client",
            instance=name,
            auth_method=config.auth.type,
        )
        return client

    def get(self, name: str) -> VaultClient:
        """
        Return the client registered under name.

        Raises:
            ConfigurationError: If no client is booted under name
        """
        try:
            return self._clients[name]
        except KeyError:
            raise ConfigurationError(f"No client booted under '{name}'") from None

    def clear(self, name: Optional[str] = None) -> None:
        """Forget one named client, or all of them when name is None.

        Cleared clients are not closed; use aclose() for that.
        """
        if name is None:
            self._clients.clear()
        else:
            self._clients.pop(name, None)

    async def aclose(self) -> None:
        """Close every registered client and empty the registry."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()
