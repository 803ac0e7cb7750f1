"""
Vault HTTP API client.

Async transport for the Vault HTTP API. Sends one request per call and maps
failures into the broker's error hierarchy. Retry policy is left to callers.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

import aiohttp

from vault_broker.common.exceptions import (
    MalformedResponseError,
    TransportError,
    VaultResponseError,
)
from vault_broker.common.logging import LoggedClass, get_logger

logger = get_logger(__name__)

DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT_SECONDS = 30


def _extract_errors(body: str) -> list:
    """Pull the ``errors`` list out of a Vault error body, if there is one."""
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return [body] if body else []
    if isinstance(parsed, dict) and isinstance(parsed.get("errors"), list):
        return [str(e) for e in parsed["errors"]]
    return []


class VaultApiClient(LoggedClass):
    """
    Async client for the Vault HTTP API.

    Usage:
        async with VaultApiClient("https://vault.example.com:8200") as api:
            body = await api.make_request(
                "GET", "secret/app", headers={"X-Vault-Token": token.id}
            )

    Configuration:
        url: Vault server address
        api_version: API prefix (default: v1)
        timeout_seconds: Total request timeout (default: 30)
        session: Optional shared aiohttp session (not closed by this client)
    """

    log_component = "api"

    def __init__(
        self,
        url: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not url:
            raise ValueError("VaultApiClient requires a server url")

        self.api_url = url.rstrip("/")
        self.api_version = api_version.strip("/")
        self.timeout_seconds = timeout_seconds

        self._session = session
        self._owns_session = session is None

        super().__init__()

    async def __aenter__(self) -> "VaultApiClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Create aiohttp session if not exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_url(self, path: str) -> str:
        return f"{self.api_url}/{self.api_version}/{path.lstrip('/')}"

    async def make_request(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request to the Vault API.

        Args:
            method: HTTP method (GET, POST, ...)
            path: API path below the version prefix (e.g. ``secret/app``)
            body: JSON body, if any
            headers: Extra request headers (X-Vault-Token, X-Vault-Namespace)

        Returns:
            Parsed JSON response, ``{}`` for empty bodies

        Raises:
            VaultResponseError: On non-2xx responses
            TransportError: On connection failures and timeouts
            MalformedResponseError: If a 2xx body is not a JSON object
        """
        session = await self._ensure_session()
        url = self.build_url(path)
        started = time.monotonic()

        try:
            async with session.request(
                method,
                url,
                json=dict(body) if body is not None else None,
                headers=dict(headers or {}),
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                text = await response.text()
                duration_ms = round((time.monotonic() - started) * 1000, 2)

                if not 200 <= response.status < 300:
                    errors = _extract_errors(text)
                    self._log(
                        logging.WARNING,
                        "Vault request failed",
                        api_method=method,
                        api_endpoint=path,
                        http_status=response.status,
                        duration_ms=duration_ms,
                    )
                    detail = f": {'; '.join(errors)}" if errors else ""
                    raise VaultResponseError(
                        f"{method} {path} returned {response.status}{detail}",
                        status_code=response.status,
                        errors=errors,
                        context={"api_method": method, "api_endpoint": path},
                    )

                self._log(
                    logging.DEBUG,
                    "Vault request completed",
                    api_method=method,
                    api_endpoint=path,
                    http_status=response.status,
                    duration_ms=duration_ms,
                )

                if response.status == 204 or not text.strip():
                    return {}

                try:
                    data = json.loads(text)
                except ValueError as e:
                    raise MalformedResponseError(
                        f"{method} {path} returned a non-JSON body", cause=e
                    ) from e

                if not isinstance(data, dict):
                    raise MalformedResponseError(
                        f"{method} {path} returned {type(data).__name__}, expected object"
                    )
                return data

        except asyncio.TimeoutError as e:
            self._log(
                logging.WARNING,
                "Vault request timeout",
                api_method=method,
                api_endpoint=path,
                error_category="transient",
            )
            raise TransportError(
                f"Timeout after {self.timeout_seconds}s: {method} {path}", cause=e
            ) from e

        except aiohttp.ClientError as e:
            self._log_exception(
                e,
                "Vault connection error",
                level=logging.WARNING,
                api_method=method,
                api_endpoint=path,
            )
            raise TransportError(f"Connection error: {method} {path}", cause=e) from e
