"""
Vault wire response schemas.

Pydantic models for the parts of Vault responses the broker relies on.
Unknown fields are ignored so newer server versions stay compatible.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class AuthBlock(BaseModel):
    """The ``auth`` object of a login response.

    Attributes:
        client_token: Token issued by the auth backend
        lease_duration: Token TTL in seconds (0 = never expires)
        renewable: Whether the token can be renewed
    """

    client_token: str = Field(
        ...,
        description="Token issued by the auth backend",
        min_length=1,
    )
    lease_duration: int = Field(
        default=0,
        description="Token TTL in seconds",
        ge=0,
    )
    renewable: bool = Field(
        default=False,
        description="Whether the token is renewable",
    )
    accessor: Optional[str] = None
    policies: Optional[list] = None

    @field_validator("client_token")
    @classmethod
    def validate_client_token(cls, v: str) -> str:
        """Reject whitespace-only tokens."""
        if not v.strip():
            raise ValueError("client_token cannot be empty or whitespace")
        return v


class LoginResponse(BaseModel):
    """Response of ``POST /auth/{mount}/login``."""

    auth: AuthBlock


class TokenLookupData(BaseModel):
    """The ``data`` object of ``GET /auth/token/lookup-self``."""

    id: Optional[str] = None
    ttl: int = Field(default=0, ge=0)
    renewable: bool = False


class TokenLookupResponse(BaseModel):
    """Response of ``GET /auth/{mount}/lookup-self``."""

    data: TokenLookupData


class SecretResponse(BaseModel):
    """Response of a generic secret read.

    ``data`` is the secret payload. Lease fields are absent on static
    (non-leased) reads and default to a zero-length, non-renewable lease.
    """

    data: Dict[str, Any]
    lease_id: str = ""
    lease_duration: int = Field(default=0, ge=0)
    renewable: bool = False

    @field_validator("lease_id", mode="before")
    @classmethod
    def normalize_lease_id(cls, v: Any) -> Any:
        """Vault sends null lease ids on some backends."""
        return "" if v is None else v

    @field_validator("lease_duration", mode="before")
    @classmethod
    def normalize_lease_duration(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("renewable", mode="before")
    @classmethod
    def normalize_renewable(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def static_reads_not_renewable(self) -> "SecretResponse":
        """A read without a lease duration is static, whatever renewable says."""
        if self.lease_duration == 0:
            self.renewable = False
        return self
