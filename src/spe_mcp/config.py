"""Configuration loader.

Loads configuration from an optional YAML file, overlays Azure AD
credentials from the environment, and validates the result against the
Pydantic schema.

Environment variables:
    SPE_MCP_CONFIG_PATH: Path to config.yaml (default: config/config.yaml)
    AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET: Credentials,
        taking precedence over the values in the YAML file

Usage:
    from spe_mcp.config import get_config

    config = get_config()
"""

import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from spe_mcp.config_schema import CURRENT_SCHEMA_VERSION, AppConfig
from spe_mcp.core.errors import ConfigLoadError, ConfigValidationError
from spe_mcp.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
CONFIG_PATH_ENV = "SPE_MCP_CONFIG_PATH"

# Environment variable -> auth field
CREDENTIAL_ENV_VARS = {
    "AZURE_TENANT_ID": "tenant_id",
    "AZURE_CLIENT_ID": "client_id",
    "AZURE_CLIENT_SECRET": "client_secret",
}

_config_lock = threading.Lock()
_current_config: AppConfig | None = None


def _get_config_path() -> Path:
    """Get the config file path from environment or default."""
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def _format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into actionable messages.

    Args:
        error: Pydantic ValidationError

    Returns:
        Formatted error message with specific field errors
    """
    messages = []
    for err in error.errors():
        field_path = ".".join(str(loc) for loc in err["loc"])
        if err["type"] == "missing":
            env_hint = next(
                (env for env, field in CREDENTIAL_ENV_VARS.items() if field_path == f"auth.{field}"),
                None,
            )
            hint = f" (or set {env_hint})" if env_hint else ""
            messages.append(f"  - Missing required field '{field_path}'{hint}")
        else:
            messages.append(f"  - Field '{field_path}': {err['msg']}")

    return "\n".join(messages)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse YAML file. A missing file yields an empty mapping.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
    """
    if not path.exists():
        logger.debug("Configuration file not found, using environment only", path=str(path))
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse YAML in {path}:\n{e}") from e
    except OSError as e:
        raise ConfigLoadError(f"Failed to read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"Configuration file must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def _apply_env_overrides(data: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    """Overlay credential environment variables onto the parsed YAML."""
    merged = dict(data)
    auth = dict(merged.get("auth") or {})
    for env_name, field in CREDENTIAL_ENV_VARS.items():
        value = environ.get(env_name)
        if value:
            auth[field] = value
    merged["auth"] = auth
    return merged


def _validate_config(data: dict[str, Any], path: Path) -> AppConfig:
    """Validate config data against Pydantic schema.

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        config = AppConfig(**data)
    except ValidationError as e:
        error_details = _format_validation_errors(e)
        raise ConfigValidationError(
            f"Configuration validation failed for {path}:\n{error_details}"
        ) from e

    if config.schema_version > CURRENT_SCHEMA_VERSION:
        raise ConfigValidationError(
            f"Config schema version {config.schema_version} is newer than "
            f"supported version {CURRENT_SCHEMA_VERSION}. "
            "Please upgrade the server or downgrade the config."
        )

    return config


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> AppConfig:
    """Load and validate configuration from YAML and the environment.

    Args:
        path: Optional path to config file. If not provided, uses
              SPE_MCP_CONFIG_PATH env var or default.
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigLoadError: If the file cannot be loaded
        ConfigValidationError: If validation fails
    """
    config_path = path or _get_config_path()
    env = dict(os.environ) if environ is None else environ

    logger.debug("Loading configuration", path=str(config_path))

    data = _apply_env_overrides(_load_yaml(config_path), env)
    config = _validate_config(data, config_path)

    logger.info(
        "Configuration loaded successfully",
        path=str(config_path),
        schema_version=config.schema_version,
        tenant_id=config.auth.tenant_id[:8] + "...",
    )
    return config


def get_config() -> AppConfig:
    """Get the current configuration singleton, loading it on first call.

    Raises:
        ConfigLoadError: If file cannot be loaded
        ConfigValidationError: If validation fails
    """
    global _current_config

    with _config_lock:
        if _current_config is None:
            _current_config = load_config()
        return _current_config


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Validate configuration without loading it into the singleton.

    Returns:
        Tuple of (is_valid, message)
    """
    config_path = path or _get_config_path()

    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        return (False, f"Load error: {e}")
    except ConfigValidationError as e:
        return (False, f"Validation error: {e}")

    return (
        True,
        f"Configuration valid (schema version {config.schema_version})\n"
        f"  - tenant: {config.auth.tenant_id}\n"
        f"  - client: {config.auth.client_id}\n"
        f"  - graph: {config.graph.base_url} (beta: {config.graph.beta_url})",
    )


def reset_config() -> None:
    """Reset the config singleton. Primarily for testing."""
    global _current_config
    with _config_lock:
        _current_config = None
