"""Shared fixtures for vault_broker tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Union
from unittest.mock import AsyncMock

import pytest

from vault_broker.auth.base import AuthStrategy
from vault_broker.auth.token import Token


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedAuth(AuthStrategy):
    """
    Auth strategy returning scripted results.

    Each authenticate() call pops the next result; exceptions are raised.
    When gated, calls block until release() so tests can pile up callers.
    """

    auth_method = "scripted"

    def __init__(self, results: List[Union[Token, Exception]], gated: bool = False):
        super().__init__(AsyncMock(), "scripted")
        self.results = list(results)
        self.calls = 0
        self._gate = asyncio.Event() if gated else None

    def release(self) -> None:
        assert self._gate is not None
        self._gate.set()

    async def authenticate(self) -> Token:
        self.calls += 1
        if self._gate is not None:
            await self._gate.wait()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def login_response():
    return {
        "auth": {
            "client_token": "tok-1",
            "lease_duration": 3600,
            "renewable": True,
        }
    }


@pytest.fixture
def login_api(login_response):
    """Transport answering every request with a successful login."""
    api = AsyncMock()
    api.make_request.return_value = login_response
    return api


@pytest.fixture
def secrets_api():
    """Transport for secret reads and writes."""
    api = AsyncMock()
    api.make_request.return_value = {}
    return api


@pytest.fixture
def scripted_auth():
    """Factory for ScriptedAuth; call it inside the test's event loop."""
    return ScriptedAuth


@pytest.fixture
def make_token(clock):
    """Build tokens stamped with the fake clock."""

    def _make(token_id: str = "tok-1", lease_duration: int = 3600, renewable: bool = True):
        return Token(
            id=token_id,
            lease_duration=lease_duration,
            renewable=renewable,
            issued_at=clock(),
        )

    return _make
