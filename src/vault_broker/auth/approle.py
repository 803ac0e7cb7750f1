"""AppRole auth method."""

import logging
from typing import Any, Callable, Dict, Optional

from vault_broker.auth.base import AuthStrategy
from vault_broker.auth.token import Token
from vault_broker.config import AUTH_TYPE_APPROLE, DEFAULT_MOUNTS, AppRoleAuthConfig
from vault_broker.protocols import Transport


class AppRoleAuth(AuthStrategy):
    """
    Logs in with a role_id / secret_id pair.

    Usage:
        auth = AppRoleAuth(api, AppRoleAuthConfig(role_id="my-role", secret_id="..."))
        token = await auth.authenticate()
    """

    auth_method = AUTH_TYPE_APPROLE

    def __init__(
        self,
        api: Transport,
        config: AppRoleAuthConfig,
        mount: Optional[str] = None,
        clock: Optional[Callable[[], Any]] = None,
    ):
        self._config = config
        super().__init__(api, mount or DEFAULT_MOUNTS[AUTH_TYPE_APPROLE], clock)

    @property
    def role(self) -> str:
        return self._config.role_id

    async def authenticate(self) -> Token:
        self._log(logging.INFO, "Making authentication request", role=self.role)

        body: Dict[str, Any] = {"role_id": self._config.role_id}
        if self._config.secret_id is not None:
            body["secret_id"] = self._config.secret_id

        return await self._login(body, self._config.namespace)
