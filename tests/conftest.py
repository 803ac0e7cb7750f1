"""
pytest configuration for vault_broker tests.

Adds src directory to Python path for imports and keeps ambient Vault/AWS
settings from leaking into tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

AMBIENT_ENV_VARS = [
    "VAULT_ADDR",
    "VAULT_TOKEN",
    "VAULT_TOKEN_LOOKUP",
    "VAULT_NAMESPACE",
    "VAULT_API_VERSION",
    "VAULT_AUTH_TYPE",
    "VAULT_AUTH_MOUNT",
    "VAULT_ROLE_ID",
    "VAULT_SECRET_ID",
    "VAULT_IAM_ROLE",
    "VAULT_IAM_SERVER_ID",
    "VAULT_TIMEOUT_SECONDS",
    "VAULT_REFRESH_BUFFER_SECONDS",
    "AWS_REGION",
]


@pytest.fixture(autouse=True)
def clean_vault_env(monkeypatch):
    """Remove Vault settings inherited from the developer's shell."""
    for name in AMBIENT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
