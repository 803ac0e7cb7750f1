"""
Vault secret store client.

Authorized generic reads and writes against Vault's key-value API. Each call
fetches a token from the TokenManager (usually a cache hit) and then makes
exactly one transport call.
"""

import logging
from typing import Any, Mapping, Optional

from vault_broker.auth.base import NAMESPACE_HEADER, TOKEN_HEADER
from vault_broker.auth.manager import TokenManager
from vault_broker.auth.token import Token
from vault_broker.common.exceptions import ErrorCategory, VaultResponseError
from vault_broker.common.logging import LoggedClass, logged_operation
from vault_broker.lease import Lease
from vault_broker.protocols import Transport


class VaultClient(LoggedClass):
    """
    Reads and writes secrets using a managed token.

    Usage:
        client = create_client(VaultConfig.from_env())
        async with client:
            lease = await client.read("secret/app")
            await client.write("secret/app", {"k": "v"})

    Args:
        api: Transport for secret requests
        token_manager: Source of valid tokens
        namespace: Vault namespace sent with every secret request
        owns_api: Close the transport when the client is closed
    """

    def __init__(
        self,
        api: Transport,
        token_manager: TokenManager,
        namespace: Optional[str] = None,
        owns_api: bool = False,
    ):
        self._api = api
        self._token_manager = token_manager
        self.namespace = namespace
        self._owns_api = owns_api
        super().__init__()

    @property
    def auth_method(self) -> str:
        return self._token_manager.auth_method

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        close = getattr(self._api, "close", None)
        if self._owns_api and close is not None:
            await close()

    async def get_auth_token(self) -> Token:
        return await self._token_manager.get_auth_token()

    def _headers(self, token: Token) -> dict:
        headers = {TOKEN_HEADER: token.id}
        if self.namespace:
            headers[NAMESPACE_HEADER] = self.namespace
        return headers

    async def _authorized_request(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        token = await self._token_manager.get_auth_token()
        try:
            return await self._api.make_request(method, path, body, self._headers(token))
        except VaultResponseError as e:
            # Token revoked or expired server-side: next call logs in again
            if e.category == ErrorCategory.AUTH and self._token_manager.token is token:
                self._log(
                    logging.WARNING,
                    "Vault rejected token, invalidating cache",
                    api_method=method,
                    api_endpoint=path,
                    http_status=e.status_code,
                )
                self._token_manager.invalidate()
            raise

    @logged_operation(level=logging.DEBUG)
    async def read(self, path: str) -> Lease:
        """
        Read a secret.

        Args:
            path: Secret path, e.g. ``secret/app``

        Returns:
            Lease with the secret payload and lease metadata

        Raises:
            AuthenticationError: If no token could be obtained
            TransportError: If the read request fails
            MalformedResponseError: If the response has no data
        """
        response = await self._authorized_request("GET", path)
        return Lease.from_response(response)

    @logged_operation(level=logging.DEBUG)
    async def write(self, path: str, data: Mapping[str, Any]) -> None:
        """
        Write a secret. The response body is discarded.

        Raises:
            AuthenticationError: If no token could be obtained
            TransportError: If the write request fails
        """
        await self._authorized_request("POST", path, data)
