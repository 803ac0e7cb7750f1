"""
Vault broker configuration.

Dataclass configs for the client and each auth method. Every config
validates itself on construction, so a bad config never reaches the network.

Sources:
    - VaultConfig.from_env(): environment variables
    - VaultConfig.from_dict() / load_config(path): YAML file
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from vault_broker.common.exceptions import ConfigurationError, InvalidCredentialsError

# Auth method discriminants
AUTH_TYPE_TOKEN = "token"
AUTH_TYPE_APPROLE = "approle"
AUTH_TYPE_IAM = "iam"

AUTH_TYPES = (AUTH_TYPE_TOKEN, AUTH_TYPE_APPROLE, AUTH_TYPE_IAM)

DEFAULT_MOUNTS = {
    AUTH_TYPE_TOKEN: "token",
    AUTH_TYPE_APPROLE: "approle",
    AUTH_TYPE_IAM: "aws",
}

# Seconds before literal expiry at which a token is treated as expired
DEFAULT_REFRESH_BUFFER_SECONDS = 30


def _require(value: Optional[str], name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{name} is required")
    return value


@dataclass(frozen=True)
class AWSCredentials:
    """Explicit AWS credential pair for IAM auth."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_mapping(cls, credentials: Any) -> "AWSCredentials":
        """
        Validate and normalize a credentials mapping.

        Accepts snake_case keys and the camelCase ``accessKeyId`` /
        ``secretAccessKey`` / ``sessionToken`` spelling.

        Raises:
            InvalidCredentialsError: For any non-mapping shape or a missing
                key id or secret
        """
        if isinstance(credentials, AWSCredentials):
            return credentials
        if not isinstance(credentials, Mapping):
            raise InvalidCredentialsError(
                "Invalid AWS credentials provided in config: expected a mapping "
                f"with access_key_id and secret_access_key, got {type(credentials).__name__}"
            )

        access_key_id = credentials.get("access_key_id") or credentials.get("accessKeyId")
        secret_access_key = credentials.get("secret_access_key") or credentials.get(
            "secretAccessKey"
        )
        session_token = credentials.get("session_token") or credentials.get("sessionToken")

        if not access_key_id or not secret_access_key:
            raise InvalidCredentialsError(
                "Invalid AWS credentials provided in config: "
                "access_key_id and secret_access_key are required."
            )

        return cls(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token or None,
        )


@dataclass(frozen=True)
class TokenAuthConfig:
    """Static token passthrough.

    lease_duration of 0 means the token is treated as non-expiring. With
    lookup enabled the token's real TTL is fetched from the server instead.
    """

    token: str = field(repr=False)
    lease_duration: int = 0
    renewable: bool = False
    lookup: bool = False

    def __post_init__(self) -> None:
        _require(self.token, "token")
        if not isinstance(self.lease_duration, int) or self.lease_duration < 0:
            raise ConfigurationError("lease_duration must be a non-negative integer")


@dataclass(frozen=True)
class AppRoleAuthConfig:
    """AppRole login: role_id plus optional secret_id."""

    role_id: str
    secret_id: Optional[str] = field(default=None, repr=False)
    namespace: Optional[str] = None

    def __post_init__(self) -> None:
        _require(self.role_id, "role_id")
        if self.secret_id is not None and not isinstance(self.secret_id, str):
            raise ConfigurationError("secret_id must be a string")


@dataclass(frozen=True)
class IAMAuthConfig:
    """AWS IAM login.

    Attributes:
        role: Role name of the auth/{mount}/role/{name} backend
        credentials: Optional explicit credentials; the ambient AWS provider
            chain is used when omitted
        iam_server_id_header_value: Value for X-Vault-AWS-IAM-Server-ID
        namespace: Vault namespace for the login request
        region: STS region; the global endpoint is used when omitted
    """

    role: str
    credentials: Optional[AWSCredentials] = None
    iam_server_id_header_value: Optional[str] = None
    namespace: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        _require(self.role, "role")
        if self.credentials is not None:
            # frozen dataclass: normalize through object.__setattr__
            object.__setattr__(
                self, "credentials", AWSCredentials.from_mapping(self.credentials)
            )


AuthMethodConfig = Union[TokenAuthConfig, AppRoleAuthConfig, IAMAuthConfig]

_CONFIG_TYPES = {
    AUTH_TYPE_TOKEN: TokenAuthConfig,
    AUTH_TYPE_APPROLE: AppRoleAuthConfig,
    AUTH_TYPE_IAM: IAMAuthConfig,
}


def normalize_auth_type(auth_type: str) -> str:
    """Map accepted spellings ("appRole", "AppRole", ...) to a discriminant."""
    normalized = (auth_type or "").strip().lower()
    if normalized not in AUTH_TYPES:
        raise ConfigurationError(
            f"Unsupported auth method: {auth_type!r} (expected one of {', '.join(AUTH_TYPES)})"
        )
    return normalized


@dataclass(frozen=True)
class AuthConfig:
    """Selects an auth method and holds its config.

    ``config`` may be given as a plain mapping; it is converted to the
    method's config dataclass on construction.
    """

    type: str
    config: Any
    mount: Optional[str] = None

    def __post_init__(self) -> None:
        auth_type = normalize_auth_type(self.type)
        object.__setattr__(self, "type", auth_type)

        config_cls = _CONFIG_TYPES[auth_type]
        config = self.config
        if isinstance(config, Mapping):
            try:
                config = config_cls(**dict(config))
            except TypeError as e:
                raise ConfigurationError(
                    f"Invalid {auth_type} auth config: {e}", cause=e
                ) from e
        if not isinstance(config, config_cls):
            raise ConfigurationError(
                f"{auth_type} auth requires {config_cls.__name__}, "
                f"got {type(config).__name__}"
            )
        object.__setattr__(self, "config", config)

        if self.mount is not None:
            object.__setattr__(self, "mount", _require(self.mount, "mount").strip("/"))

    @property
    def resolved_mount(self) -> str:
        return self.mount or DEFAULT_MOUNTS[self.type]


@dataclass(frozen=True)
class VaultConfig:
    """Vault client configuration.

    Load from environment using VaultConfig.from_env() or from YAML using
    load_config().
    """

    url: str
    auth: AuthConfig
    api_version: str = "v1"
    namespace: Optional[str] = None
    timeout_seconds: float = 30
    refresh_buffer_seconds: float = DEFAULT_REFRESH_BUFFER_SECONDS

    def __post_init__(self) -> None:
        _require(self.url, "url")
        if not isinstance(self.auth, AuthConfig):
            raise ConfigurationError("auth must be an AuthConfig")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be positive")
        if self.refresh_buffer_seconds < 0:
            raise ConfigurationError("refresh_buffer_seconds must be non-negative")

    @classmethod
    def from_dict(cls, data: Mapping) -> "VaultConfig":
        """
        Build configuration from a mapping (e.g. parsed YAML).

        Expected shape:
            url: https://vault.example.com:8200
            api_version: v1          # optional
            namespace: team-a        # optional
            timeout_seconds: 30      # optional
            refresh_buffer_seconds: 30
            auth:
              type: approle
              mount: approle         # optional
              config:
                role_id: ...
                secret_id: ...

        Raises:
            ConfigurationError: If required values are missing or invalid
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Vault config must be a mapping")

        # Allow the config to be nested under a top-level "vault" key
        if "vault" in data and isinstance(data["vault"], Mapping):
            data = data["vault"]

        auth = data.get("auth")
        if not isinstance(auth, Mapping):
            raise ConfigurationError("auth section is required")
        if "type" not in auth:
            raise ConfigurationError("auth.type is required")

        auth_config = AuthConfig(
            type=auth["type"],
            config=auth.get("config") or {},
            mount=auth.get("mount"),
        )

        kwargs: Dict[str, Any] = {}
        for key in ("api_version", "namespace", "timeout_seconds", "refresh_buffer_seconds"):
            if data.get(key) is not None:
                kwargs[key] = data[key]

        url = data.get("url") or (data.get("api") or {}).get("url")
        return cls(url=url, auth=auth_config, **kwargs)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Load configuration from environment variables.

        Required environment variables:
            VAULT_ADDR: Vault server address

        Optional environment variables (with defaults):
            VAULT_API_VERSION: v1 (default)
            VAULT_NAMESPACE: unset
            VAULT_TIMEOUT_SECONDS: 30 (default)
            VAULT_REFRESH_BUFFER_SECONDS: 30 (default)
            VAULT_AUTH_TYPE: token (default) | approle | iam
            VAULT_AUTH_MOUNT: method default (token / approle / aws)

        Per auth method:
            token:   VAULT_TOKEN (required), VAULT_TOKEN_LOOKUP (true/false)
            approle: VAULT_ROLE_ID (required), VAULT_SECRET_ID
            iam:     VAULT_IAM_ROLE (required), VAULT_IAM_SERVER_ID, AWS_REGION,
                     AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY are left to the
                     ambient credential chain

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        url = os.getenv("VAULT_ADDR")
        if not url:
            raise ConfigurationError("VAULT_ADDR environment variable is required")

        auth_type = normalize_auth_type(os.getenv("VAULT_AUTH_TYPE", AUTH_TYPE_TOKEN))
        namespace = os.getenv("VAULT_NAMESPACE") or None

        method_config: AuthMethodConfig
        if auth_type == AUTH_TYPE_TOKEN:
            token = os.getenv("VAULT_TOKEN")
            if not token:
                raise ConfigurationError(
                    "VAULT_TOKEN environment variable is required for token auth"
                )
            method_config = TokenAuthConfig(
                token=token,
                lookup=os.getenv("VAULT_TOKEN_LOOKUP", "").lower() == "true",
            )
        elif auth_type == AUTH_TYPE_APPROLE:
            role_id = os.getenv("VAULT_ROLE_ID")
            if not role_id:
                raise ConfigurationError(
                    "VAULT_ROLE_ID environment variable is required for approle auth"
                )
            method_config = AppRoleAuthConfig(
                role_id=role_id,
                secret_id=os.getenv("VAULT_SECRET_ID") or None,
                namespace=namespace,
            )
        else:
            role = os.getenv("VAULT_IAM_ROLE")
            if not role:
                raise ConfigurationError(
                    "VAULT_IAM_ROLE environment variable is required for iam auth"
                )
            method_config = IAMAuthConfig(
                role=role,
                iam_server_id_header_value=os.getenv("VAULT_IAM_SERVER_ID") or None,
                namespace=namespace,
                region=os.getenv("AWS_REGION") or None,
            )

        try:
            timeout_seconds = float(os.getenv("VAULT_TIMEOUT_SECONDS", "30"))
            refresh_buffer = float(
                os.getenv(
                    "VAULT_REFRESH_BUFFER_SECONDS", str(DEFAULT_REFRESH_BUFFER_SECONDS)
                )
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}", cause=e) from e

        return cls(
            url=url,
            auth=AuthConfig(
                type=auth_type,
                config=method_config,
                mount=os.getenv("VAULT_AUTH_MOUNT") or None,
            ),
            api_version=os.getenv("VAULT_API_VERSION", "v1"),
            namespace=namespace,
            timeout_seconds=timeout_seconds,
            refresh_buffer_seconds=refresh_buffer,
        )


def load_config(path: Union[str, Path]) -> VaultConfig:
    """
    Load VaultConfig from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unparseable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}", cause=e) from e

    return VaultConfig.from_dict(data)
