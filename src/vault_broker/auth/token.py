"""Vault token value object."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Token:
    """
    Vault token with lease metadata.

    A lease_duration of 0 means the token never expires (root and other
    periodic-free static tokens report a TTL of 0).

    Attributes:
        id: Opaque token string sent as X-Vault-Token
        lease_duration: TTL in seconds at issue time
        renewable: Whether the server allows renewing this token
        issued_at: UTC time the token was obtained
    """

    id: str = field(repr=False)
    lease_duration: int = 0
    renewable: bool = False
    issued_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if self.lease_duration < 0:
            raise ValueError("lease_duration must be non-negative")

    @property
    def expires_at(self) -> Optional[datetime]:
        """Literal expiry time, or None for non-expiring tokens."""
        if self.lease_duration == 0:
            return None
        return self.issued_at + timedelta(seconds=self.lease_duration)

    def remaining(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Time left before literal expiry, or None if the token never expires."""
        expires_at = self.expires_at
        if expires_at is None:
            return None
        return expires_at - (now or utc_now())

    def is_expired(
        self, now: Optional[datetime] = None, buffer_seconds: float = 0
    ) -> bool:
        """Check if the token is expired, treating the last buffer_seconds as expired."""
        remaining = self.remaining(now)
        if remaining is None:
            return False
        return remaining.total_seconds() <= buffer_seconds
