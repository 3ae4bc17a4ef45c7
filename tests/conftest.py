"""Pytest fixtures and configuration for the SharePoint Embedded tool server tests.

Provides common fixtures for configuration, local folder trees and
Graph doubles.
"""

from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest

from spe_mcp.config import CONFIG_PATH_ENV, CREDENTIAL_ENV_VARS, reset_config
from spe_mcp.config_schema import AppConfig


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset the config singleton before each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials and config paths out of the tests."""
    for env_name in [*CREDENTIAL_ENV_VARS, CONFIG_PATH_ENV]:
        monkeypatch.delenv(env_name, raising=False)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a minimal valid config.yaml content."""
    return """
schema_version: 1

auth:
  tenant_id: "test-tenant-id"
  client_id: "test-client-id"
  client_secret: "test-client-secret"

graph:
  max_retries: 2
"""


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Return a minimal valid config as a dictionary."""
    return {
        "schema_version": 1,
        "auth": {
            "tenant_id": "test-tenant-id",
            "client_id": "test-client-id",
            "client_secret": "test-client-secret",
        },
    }


@pytest.fixture
def sample_config(sample_config_dict: dict[str, Any]) -> AppConfig:
    """Return a minimal valid AppConfig instance."""
    return AppConfig(**sample_config_dict)


@pytest.fixture
def config_file(tmp_path: Path, sample_config_yaml: str) -> Path:
    """Create a temporary config file with valid content."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config_path = config_dir / "config.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path


@pytest.fixture
def set_config_env(config_file: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point SPE_MCP_CONFIG_PATH at the temporary config file."""
    monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))
    return config_file


@pytest.fixture
def mock_client() -> MagicMock:
    """Return a mock GraphClient."""
    return MagicMock()


@pytest.fixture
def mock_drive_items() -> MagicMock:
    """Return a mock DriveItemManager whose writes succeed."""
    drive_items = MagicMock()
    drive_items.write_content.return_value = {"id": "item-1", "name": "file"}
    return drive_items


@pytest.fixture
def docs_tree(tmp_path: Path) -> Path:
    """Create a local tree with a.txt and sub/b.txt."""
    root = tmp_path / "docs"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "sub" / "b.txt").write_bytes(b"bravo")
    return root
