"""Static token auth method."""

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from vault_broker.auth.base import TOKEN_HEADER, AuthStrategy
from vault_broker.auth.token import Token
from vault_broker.common.exceptions import MalformedResponseError
from vault_broker.config import DEFAULT_MOUNTS, AUTH_TYPE_TOKEN, TokenAuthConfig
from vault_broker.protocols import Transport
from vault_broker.schemas import TokenLookupResponse


class TokenAuth(AuthStrategy):
    """
    Passes a pre-issued token through.

    Without lookup the token is returned with its configured lease metadata
    and no request is made. With lookup, ``auth/{mount}/lookup-self`` supplies
    the token's real TTL and renewability.
    """

    auth_method = AUTH_TYPE_TOKEN

    def __init__(
        self,
        api: Transport,
        config: TokenAuthConfig,
        mount: Optional[str] = None,
        clock: Optional[Callable[[], Any]] = None,
    ):
        self._config = config
        super().__init__(api, mount or DEFAULT_MOUNTS[AUTH_TYPE_TOKEN], clock)

    async def authenticate(self) -> Token:
        if not self._config.lookup:
            self._log(logging.DEBUG, "Using configured token")
            return Token(
                id=self._config.token,
                lease_duration=self._config.lease_duration,
                renewable=self._config.renewable,
                issued_at=self._clock(),
            )

        self._log(logging.INFO, "Looking up configured token")
        response = await self._api.make_request(
            "GET",
            f"auth/{self.mount}/lookup-self",
            None,
            {TOKEN_HEADER: self._config.token},
        )
        try:
            parsed = TokenLookupResponse.model_validate(response)
        except ValidationError as e:
            raise MalformedResponseError(
                "Token lookup response is missing data", cause=e
            ) from e

        return Token(
            id=self._config.token,
            lease_duration=parsed.data.ttl,
            renewable=parsed.data.renewable,
            issued_at=self._clock(),
        )
