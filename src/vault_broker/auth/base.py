"""
Auth strategy interface.

Every auth method turns its own configuration into a fresh Token through
``authenticate()``. Strategies never cache; TokenManager owns the cache.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from vault_broker.auth.token import Token, utc_now
from vault_broker.common.exceptions import MalformedResponseError
from vault_broker.common.logging import LoggedClass
from vault_broker.protocols import Transport
from vault_broker.schemas import LoginResponse

NAMESPACE_HEADER = "X-Vault-Namespace"
TOKEN_HEADER = "X-Vault-Token"


class AuthStrategy(LoggedClass, ABC):
    """
    Base class for Vault auth methods.

    Subclasses set ``auth_method`` and implement ``authenticate()``.

    Args:
        api: Transport used for login requests
        mount: Auth backend mount path (e.g. "approle", "aws")
        clock: Returns the current UTC time; stamped on issued tokens
    """

    auth_method: str = ""

    def __init__(
        self,
        api: Transport,
        mount: str,
        clock: Optional[Callable[[], Any]] = None,
    ):
        self._api = api
        self.mount = mount.strip("/")
        self._clock = clock or utc_now
        super().__init__()

    @abstractmethod
    async def authenticate(self) -> Token:
        """
        Obtain a fresh token from Vault.

        Raises:
            TransportError: If the login request fails
            MalformedResponseError: If the login response is unusable
        """

    @property
    def login_path(self) -> str:
        return f"auth/{self.mount}/login"

    @staticmethod
    def namespace_headers(namespace: Optional[str]) -> Dict[str, str]:
        return {NAMESPACE_HEADER: namespace} if namespace else {}

    def _token_from_login(self, response: Mapping[str, Any]) -> Token:
        """Parse ``auth.client_token`` / ``lease_duration`` / ``renewable``."""
        try:
            parsed = LoginResponse.model_validate(response)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Login response from auth/{self.mount} is missing auth fields",
                cause=e,
                context={"auth_method": self.auth_method, "mount": self.mount},
            ) from e

        token = Token(
            id=parsed.auth.client_token,
            lease_duration=parsed.auth.lease_duration,
            renewable=parsed.auth.renewable,
            issued_at=self._clock(),
        )
        self._log(
            logging.DEBUG,
            "Received token",
            lease_duration=token.lease_duration,
            renewable=token.renewable,
        )
        return token

    async def _login(
        self,
        body: Mapping[str, Any],
        namespace: Optional[str] = None,
    ) -> Token:
        response = await self._api.make_request(
            "POST",
            self.login_path,
            body,
            self.namespace_headers(namespace),
        )
        return self._token_from_login(response)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mount={self.mount!r})"
