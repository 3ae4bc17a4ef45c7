"""Tests for config.py and config_schema.py.

Covers YAML loading, the credential environment overlay, validation
messages, the singleton, and validate_config_file().
"""

from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from spe_mcp.config import (
    CONFIG_PATH_ENV,
    get_config,
    load_config,
    reset_config,
    validate_config_file,
)
from spe_mcp.config_schema import GRAPH_DEFAULT_SCOPE, AppConfig, AuthConfig, GraphConfig
from spe_mcp.core.errors import ConfigLoadError, ConfigValidationError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestSchema:
    """Tests for the Pydantic models."""

    def test_defaults(self, sample_config: AppConfig) -> None:
        assert sample_config.schema_version == 1
        assert sample_config.auth.authority_host == "https://login.microsoftonline.com"
        assert sample_config.auth.scopes == [GRAPH_DEFAULT_SCOPE]
        assert sample_config.graph.base_url == "https://graph.microsoft.com/v1.0"
        assert sample_config.graph.beta_url == "https://graph.microsoft.com/beta"
        assert sample_config.graph.max_retries == 3
        assert sample_config.logging.level == "INFO"
        assert sample_config.logging.json_output is True

    def test_secret_is_not_rendered(self, sample_config: AppConfig) -> None:
        assert "test-client-secret" not in repr(sample_config)
        assert sample_config.auth.client_secret.get_secret_value() == "test-client-secret"

    @pytest.mark.parametrize("field", ["tenant_id", "client_id", "client_secret"])
    def test_blank_credential_rejected(self, field: str) -> None:
        data: dict[str, Any] = {"tenant_id": "t", "client_id": "c", "client_secret": "s"}
        data[field] = "   "

        with pytest.raises(ValidationError, match="credentials are missing"):
            AuthConfig(**data)

    def test_identifiers_are_stripped(self) -> None:
        auth = AuthConfig(tenant_id=" t ", client_id=" c ", client_secret="s")

        assert auth.tenant_id == "t"
        assert auth.client_id == "c"

    def test_authority_host_must_be_https(self) -> None:
        with pytest.raises(ValidationError, match="https"):
            AuthConfig(tenant_id="t", client_id="c", client_secret="s", authority_host="http://x")

    def test_authority_host_trailing_slash_removed(self) -> None:
        auth = AuthConfig(
            tenant_id="t",
            client_id="c",
            client_secret="s",
            authority_host="https://login.microsoftonline.us/",
        )

        assert auth.authority_host == "https://login.microsoftonline.us"

    def test_max_retries_bounds(self) -> None:
        with pytest.raises(ValidationError):
            GraphConfig(max_retries=11)
        with pytest.raises(ValidationError):
            GraphConfig(max_retries=-1)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_from_file(self, config_file: Path) -> None:
        config = load_config(config_file, environ={})

        assert config.auth.tenant_id == "test-tenant-id"
        assert config.graph.max_retries == 2

    def test_environment_overrides_file(self, config_file: Path) -> None:
        config = load_config(
            config_file,
            environ={"AZURE_TENANT_ID": "env-tenant", "AZURE_CLIENT_SECRET": "env-secret"},
        )

        assert config.auth.tenant_id == "env-tenant"
        assert config.auth.client_id == "test-client-id"
        assert config.auth.client_secret.get_secret_value() == "env-secret"

    def test_environment_only(self, tmp_path: Path) -> None:
        config = load_config(
            tmp_path / "missing.yaml",
            environ={
                "AZURE_TENANT_ID": "t",
                "AZURE_CLIENT_ID": "c",
                "AZURE_CLIENT_SECRET": "s",
            },
        )

        assert config.auth.tenant_id == "t"
        assert config.graph.max_retries == 3

    def test_empty_environment_value_does_not_override(self, config_file: Path) -> None:
        config = load_config(config_file, environ={"AZURE_CLIENT_ID": ""})

        assert config.auth.client_id == "test-client-id"

    def test_missing_credentials_name_env_vars(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(tmp_path / "missing.yaml", environ={})

        message = str(exc_info.value)
        assert "auth.tenant_id' (or set AZURE_TENANT_ID)" in message
        assert "auth.client_id' (or set AZURE_CLIENT_ID)" in message
        assert "auth.client_secret' (or set AZURE_CLIENT_SECRET)" in message

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("auth: [unclosed\n")

        with pytest.raises(ConfigLoadError, match="Failed to parse YAML"):
            load_config(path, environ={})

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigLoadError, match="must be a YAML mapping"):
            load_config(path, environ={})

    def test_schema_version_too_new(self, tmp_path: Path, sample_config_yaml: str) -> None:
        path = tmp_path / "future.yaml"
        path.write_text(sample_config_yaml.replace("schema_version: 1", "schema_version: 99"))

        with pytest.raises(ConfigValidationError, match="newer than supported"):
            load_config(path, environ={})

    def test_invalid_field_value(self, tmp_path: Path, sample_config_yaml: str) -> None:
        path = tmp_path / "retries.yaml"
        path.write_text(sample_config_yaml.replace("max_retries: 2", "max_retries: 50"))

        with pytest.raises(ConfigValidationError, match="graph.max_retries"):
            load_config(path, environ={})


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------


class TestGetConfig:
    """Tests for the get_config() singleton."""

    def test_uses_config_path_env(self, set_config_env: Path) -> None:
        config = get_config()

        assert config.auth.tenant_id == "test-tenant-id"

    def test_returns_same_instance(self, set_config_env: Path) -> None:
        assert get_config() is get_config()

    def test_reset_reloads(self, set_config_env: Path) -> None:
        first = get_config()
        reset_config()

        assert get_config() is not first

    def test_reads_credentials_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "absent.yaml"))
        monkeypatch.setenv("AZURE_TENANT_ID", "t")
        monkeypatch.setenv("AZURE_CLIENT_ID", "c")
        monkeypatch.setenv("AZURE_CLIENT_SECRET", "s")

        assert get_config().auth.client_id == "c"


# ---------------------------------------------------------------------------
# validate_config_file
# ---------------------------------------------------------------------------


class TestValidateConfigFile:
    """Tests for validate_config_file()."""

    def test_valid(self, config_file: Path) -> None:
        is_valid, message = validate_config_file(config_file)

        assert is_valid is True
        assert message.startswith("Configuration valid (schema version 1)")
        assert "test-tenant-id" in message
        assert "test-client-secret" not in message

    def test_validation_error(self, tmp_path: Path) -> None:
        is_valid, message = validate_config_file(tmp_path / "missing.yaml")

        assert is_valid is False
        assert message.startswith("Validation error:")

    def test_load_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("auth: [unclosed\n")

        is_valid, message = validate_config_file(path)

        assert is_valid is False
        assert message.startswith("Load error:")

    def test_does_not_populate_singleton(
        self, config_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        validate_config_file(config_file)
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "absent.yaml"))

        with pytest.raises(ConfigValidationError):
            get_config()
