"""Tests for configuration loading."""

import pytest

from vault_broker.common.exceptions import ConfigurationError, InvalidCredentialsError
from vault_broker.config import (
    AppRoleAuthConfig,
    AuthConfig,
    AWSCredentials,
    IAMAuthConfig,
    TokenAuthConfig,
    VaultConfig,
    load_config,
)


class TestVaultConfigFromEnv:
    """Test environment variable loading."""

    def test_token_defaults(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com:8200")
        monkeypatch.setenv("VAULT_TOKEN", "s.static")

        config = VaultConfig.from_env()

        assert config.url == "https://vault.example.com:8200"
        assert config.api_version == "v1"
        assert config.namespace is None
        assert config.timeout_seconds == 30
        assert config.refresh_buffer_seconds == 30
        assert config.auth.type == "token"
        assert config.auth.resolved_mount == "token"
        assert config.auth.config == TokenAuthConfig(token="s.static")

    def test_token_lookup(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_TOKEN", "s.static")
        monkeypatch.setenv("VAULT_TOKEN_LOOKUP", "TRUE")

        assert VaultConfig.from_env().auth.config.lookup is True

    def test_approle(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_AUTH_TYPE", "AppRole")
        monkeypatch.setenv("VAULT_ROLE_ID", "my-role")
        monkeypatch.setenv("VAULT_SECRET_ID", "s3cret")
        monkeypatch.setenv("VAULT_NAMESPACE", "team-a")
        monkeypatch.setenv("VAULT_AUTH_MOUNT", "approle-prod")
        monkeypatch.setenv("VAULT_REFRESH_BUFFER_SECONDS", "60")

        config = VaultConfig.from_env()

        assert config.auth.type == "approle"
        assert config.auth.resolved_mount == "approle-prod"
        assert config.auth.config == AppRoleAuthConfig(
            role_id="my-role", secret_id="s3cret", namespace="team-a"
        )
        assert config.namespace == "team-a"
        assert config.refresh_buffer_seconds == 60

    def test_iam(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_AUTH_TYPE", "iam")
        monkeypatch.setenv("VAULT_IAM_ROLE", "my-iam-role")
        monkeypatch.setenv("VAULT_IAM_SERVER_ID", "https://vault.example.com")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")

        config = VaultConfig.from_env()

        assert config.auth.resolved_mount == "aws"
        assert config.auth.config == IAMAuthConfig(
            role="my-iam-role",
            iam_server_id_header_value="https://vault.example.com",
            region="eu-west-1",
        )

    def test_missing_addr(self):
        with pytest.raises(ConfigurationError, match="VAULT_ADDR"):
            VaultConfig.from_env()

    @pytest.mark.parametrize(
        "auth_type,variable",
        [("token", "VAULT_TOKEN"), ("approle", "VAULT_ROLE_ID"), ("iam", "VAULT_IAM_ROLE")],
    )
    def test_missing_method_setting(self, monkeypatch, auth_type, variable):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_AUTH_TYPE", auth_type)

        with pytest.raises(ConfigurationError, match=variable):
            VaultConfig.from_env()

    def test_unknown_auth_type(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_AUTH_TYPE", "kerberos")

        with pytest.raises(ConfigurationError, match="kerberos"):
            VaultConfig.from_env()

    def test_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_TOKEN", "s.static")
        monkeypatch.setenv("VAULT_TIMEOUT_SECONDS", "soon")

        with pytest.raises(ConfigurationError, match="Invalid numeric setting"):
            VaultConfig.from_env()


class TestVaultConfigValidation:
    """Test construction-time checks."""

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="timeout_seconds"):
            VaultConfig(
                url="https://vault.example.com",
                auth=AuthConfig(type="token", config={"token": "s.static"}),
                timeout_seconds=0,
            )

    def test_negative_refresh_buffer(self):
        with pytest.raises(ConfigurationError, match="refresh_buffer_seconds"):
            VaultConfig(
                url="https://vault.example.com",
                auth=AuthConfig(type="token", config={"token": "s.static"}),
                refresh_buffer_seconds=-1,
            )

    def test_mount_slashes_stripped(self):
        auth = AuthConfig(type="approle", config={"role_id": "r"}, mount="/approle-prod/")

        assert auth.mount == "approle-prod"
        assert auth.resolved_mount == "approle-prod"

    def test_blank_mount_rejected(self):
        with pytest.raises(ConfigurationError, match="mount"):
            AuthConfig(type="approle", config={"role_id": "r"}, mount="  ")

    def test_credentials_snake_case(self):
        credentials = AWSCredentials.from_mapping(
            {"access_key_id": "AKID", "secret_access_key": "secret"}
        )

        assert credentials.access_key_id == "AKID"
        assert credentials.session_token is None

    @pytest.mark.parametrize(
        "credentials",
        [
            ["AKID", "secret"],
            "AKID:secret",
            {"accessKeyId": "AKID"},
            {"accessKeyId": "", "secretAccessKey": "secret"},
        ],
    )
    def test_invalid_credentials(self, credentials):
        with pytest.raises(InvalidCredentialsError):
            AWSCredentials.from_mapping(credentials)

    def test_invalid_credentials_are_configuration_errors(self):
        assert issubclass(InvalidCredentialsError, ConfigurationError)


class TestLoadConfig:
    """Test YAML loading."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text(
            """
url: https://vault.example.com:8200
namespace: team-a
timeout_seconds: 10
auth:
  type: approle
  mount: approle-prod
  config:
    role_id: my-role
    secret_id: s3cret
""",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.url == "https://vault.example.com:8200"
        assert config.namespace == "team-a"
        assert config.timeout_seconds == 10
        assert config.auth.resolved_mount == "approle-prod"
        assert config.auth.config.secret_id == "s3cret"

    def test_nested_vault_key(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            """
vault:
  api:
    url: https://vault.example.com
  auth:
    type: iam
    config:
      role: my-iam-role
      credentials:
        accessKeyId: AKID
        secretAccessKey: secret
""",
            encoding="utf-8",
        )

        config = load_config(str(path))

        assert config.url == "https://vault.example.com"
        assert config.auth.config.credentials == AWSCredentials("AKID", "secret")

    def test_list_credentials_rejected(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text(
            """
url: https://vault.example.com
auth:
  type: iam
  config:
    role: my-iam-role
    credentials:
      - AKID
      - secret
""",
            encoding="utf-8",
        )

        with pytest.raises(InvalidCredentialsError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text("url: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_missing_auth_section(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text("url: https://vault.example.com\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="auth section"):
            load_config(path)

    def test_missing_url(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text(
            "auth:\n  type: token\n  config:\n    token: s.static\n", encoding="utf-8"
        )

        with pytest.raises(ConfigurationError, match="url is required"):
            load_config(path)
