"""
Token lifecycle management.

TokenManager wraps one AuthStrategy, caches the token it returns and
re-authenticates on demand once the cached token enters its refresh window.
Concurrent callers share a single in-flight login.

Refresh window:
    A token counts as expired once its remaining lifetime drops below
    min(refresh_buffer_seconds, 10% of its lease_duration). The fractional
    cap keeps short-lived tokens usable; the fixed cap absorbs clock skew
    and request latency on long-lived ones. Non-expiring tokens
    (lease_duration 0) are never refreshed.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional

from vault_broker.auth.base import AuthStrategy
from vault_broker.auth.token import Token, utc_now
from vault_broker.common.exceptions import AuthenticationError, ConfigurationError
from vault_broker.common.logging import LoggedClass
from vault_broker.config import DEFAULT_REFRESH_BUFFER_SECONDS

# Upper bound on the refresh window as a fraction of the token TTL
REFRESH_WINDOW_FRACTION = 0.1


def _retrieve_refresh_error(task: "asyncio.Task[Token]") -> None:
    # Every waiter may have been cancelled; the failure is already logged
    if not task.cancelled():
        task.exception()


class AuthState(str, Enum):
    """Lifecycle state of a TokenManager."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class TokenManager(LoggedClass):
    """
    Hands out a currently valid token, logging in only when needed.

    State machine:
        UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED(token)
        AUTHENTICATED (token in refresh window) -> AUTHENTICATING -> AUTHENTICATED(new)
        AUTHENTICATING (login failed) -> UNAUTHENTICATED

    There is no background renewal; expiry is checked on each call.

    Usage:
        manager = TokenManager(AppRoleAuth(api, config))
        token = await manager.get_auth_token()

    Args:
        strategy: Auth method used to obtain tokens (owned by the manager)
        refresh_buffer_seconds: Fixed part of the refresh window
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        strategy: AuthStrategy,
        refresh_buffer_seconds: float = DEFAULT_REFRESH_BUFFER_SECONDS,
        clock: Optional[Callable[[], Any]] = None,
    ):
        if refresh_buffer_seconds < 0:
            raise ConfigurationError("refresh_buffer_seconds must be non-negative")

        self._strategy = strategy
        self.refresh_buffer_seconds = refresh_buffer_seconds
        self._clock = clock or utc_now

        self._token: Optional[Token] = None
        self._refresh_task: Optional["asyncio.Task[Token]"] = None
        self._waiters = 0

        super().__init__()

    @property
    def auth_method(self) -> str:
        return self._strategy.auth_method

    @property
    def mount(self) -> str:
        return self._strategy.mount

    @property
    def strategy(self) -> AuthStrategy:
        return self._strategy

    @property
    def token(self) -> Optional[Token]:
        """Currently cached token, which may be inside its refresh window."""
        return self._token

    @property
    def state(self) -> AuthState:
        if self._refresh_task is not None:
            return AuthState.AUTHENTICATING
        if self._token is not None:
            return AuthState.AUTHENTICATED
        return AuthState.UNAUTHENTICATED

    def refresh_window(self, token: Token) -> float:
        """Seconds before literal expiry at which token is treated as expired."""
        return min(
            self.refresh_buffer_seconds,
            token.lease_duration * REFRESH_WINDOW_FRACTION,
        )

    def is_usable(self, token: Optional[Token]) -> bool:
        if token is None:
            return False
        return not token.is_expired(self._clock(), self.refresh_window(token))

    async def get_auth_token(self) -> Token:
        """
        Return a valid token, logging in if none is cached or it is expiring.

        Callers arriving while a login is in flight wait for that login
        instead of starting another one.

        Raises:
            AuthenticationError: If the login fails; every caller waiting on
                the same login receives it
        """
        if self._refresh_task is None and self.is_usable(self._token):
            return self._token  # type: ignore[return-value]

        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh())
            self._refresh_task.add_done_callback(_retrieve_refresh_error)
        else:
            self._log(
                logging.DEBUG,
                "Joining in-flight authentication",
                waiters=self._waiters + 1,
            )

        task = self._refresh_task
        self._waiters += 1
        try:
            # A cancelled caller must not cancel the login other callers share
            return await asyncio.shield(task)
        finally:
            self._waiters -= 1

    async def _refresh(self) -> Token:
        previous = self._token
        self._token = None
        self._log(
            logging.INFO,
            "Authenticating" if previous is None else "Token expiring, re-authenticating",
        )

        try:
            token = await self._strategy.authenticate()
        except AuthenticationError as e:
            self._log_exception(e, "Authentication failed", level=logging.WARNING)
            raise
        except Exception as e:
            self._log_exception(e, "Authentication failed", level=logging.WARNING)
            raise AuthenticationError(
                f"{self.auth_method} login via auth/{self.mount} failed",
                cause=e,
                context={"auth_method": self.auth_method, "mount": self.mount},
            ) from e
        finally:
            self._refresh_task = None

        self._token = token
        self._log(
            logging.INFO,
            "Authenticated",
            lease_duration=token.lease_duration,
            renewable=token.renewable,
        )
        return token

    def invalidate(self) -> None:
        """Drop the cached token so the next call logs in again."""
        if self._token is not None:
            self._log(logging.DEBUG, "Invalidating cached token")
        self._token = None
