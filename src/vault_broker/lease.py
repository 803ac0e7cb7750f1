"""Lease value object wrapping a secret read."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import ValidationError

from vault_broker.common.exceptions import MalformedResponseError
from vault_broker.schemas import SecretResponse


@dataclass(frozen=True)
class Lease:
    """
    Secret payload plus its lease metadata.

    Attributes:
        data: Secret key/value payload (read-only view)
        lease_id: Lease identifier, empty for non-leased reads
        lease_duration: Lease TTL in seconds, 0 for static reads
        renewable: Whether the lease can be renewed
    """

    data: Mapping[str, Any] = field(repr=False)
    lease_id: str = ""
    lease_duration: int = 0
    renewable: bool = False

    @classmethod
    def from_response(cls, response: Any) -> "Lease":
        """
        Build a Lease from a raw read response.

        Args:
            response: Parsed JSON body of a Vault read

        Returns:
            Lease carrying the payload and lease metadata unchanged

        Raises:
            MalformedResponseError: If the response has no ``data`` mapping
        """
        if not isinstance(response, Mapping):
            raise MalformedResponseError(
                f"Secret response must be an object, got {type(response).__name__}"
            )

        try:
            parsed = SecretResponse.model_validate(dict(response))
        except ValidationError as e:
            raise MalformedResponseError(
                "Secret response is missing expected fields", cause=e
            ) from e

        return cls(
            data=MappingProxyType(dict(parsed.data)),
            lease_id=parsed.lease_id,
            lease_duration=parsed.lease_duration,
            renewable=parsed.renewable,
        )

    @property
    def is_static(self) -> bool:
        """True for reads that carry no lease."""
        return self.lease_duration == 0

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]
