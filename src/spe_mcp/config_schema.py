"""Pydantic configuration schema for the SharePoint Embedded tool server.

This module defines the configuration schema that mirrors config.yaml structure.
Credentials may come from the YAML file or from the environment; either way
the merged result is validated against these models on startup.

Usage:
    from spe_mcp.config_schema import AppConfig

    config = AppConfig(**yaml_data)
"""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator

# Current schema version - increment when adding new required fields
CURRENT_SCHEMA_VERSION = 1

GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"


class AuthConfig(BaseModel):
    """Azure AD application (client credentials) configuration."""

    tenant_id: str = Field(description="Azure AD Directory (tenant) ID")
    client_id: str = Field(description="Azure AD Application (client) ID")
    client_secret: SecretStr = Field(description="Azure AD application client secret")
    authority_host: str = Field(
        default="https://login.microsoftonline.com",
        description="Azure AD authority host (public cloud by default)",
    )
    scopes: list[str] = Field(
        default=[GRAPH_DEFAULT_SCOPE],
        description="Scopes requested for app-only Graph tokens",
    )

    @field_validator("tenant_id", "client_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty identifiers so the error names the missing field."""
        if not v or not v.strip():
            raise ValueError(
                "Azure AD application credentials are missing. "
                "Provide tenant_id, client_id and client_secret"
            )
        return v.strip()

    @field_validator("client_secret")
    @classmethod
    def validate_secret_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError(
                "Azure AD application credentials are missing. "
                "Provide tenant_id, client_id and client_secret"
            )
        return v

    @field_validator("authority_host")
    @classmethod
    def validate_authority_host(cls, v: str) -> str:
        if not v.startswith("https://"):
            raise ValueError("Authority host must be an https:// URL")
        return v.rstrip("/")


class GraphConfig(BaseModel):
    """Microsoft Graph endpoint and request settings."""

    base_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="Graph v1.0 endpoint (drive item operations)",
    )
    beta_url: str = Field(
        default="https://graph.microsoft.com/beta",
        description="Graph beta endpoint (fileStorage container operations)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Timeout for regular Graph requests",
    )
    upload_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        le=3600,
        description="Timeout for whole-file content uploads",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for 429, 5xx, timeouts and connection errors",
    )


class LoggingConfig(BaseModel):
    """Structured logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_output: bool = Field(
        default=True,
        description="Emit JSON log lines (False for human-readable console output)",
    )


class AppConfig(BaseModel):
    """Root configuration model."""

    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, ge=1)
    auth: AuthConfig
    graph: GraphConfig = Field(default_factory=GraphConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
