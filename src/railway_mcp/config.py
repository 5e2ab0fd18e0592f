# ABOUTME: Configuration management for Railway MCP Server
# ABOUTME: Handles environment variables, CLI location, API endpoint, and audit settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module handles all configuration for the MCP server. It:

1. READS environment variables (like RAILWAY_MCP_CLI_BINARY, MCP_AUDIT_LOG)
2. VALIDATES them (positive TTLs, https endpoints, known log levels)
3. PROVIDES typed access to settings throughout the application

Nothing here talks to Railway. The settings only describe WHERE the Railway
CLI lives, HOW LONG its detected version may be trusted, and WHICH GraphQL
endpoint the template tools call.

=============================================================================
ARCHITECTURE: TWO CONFIGURATION CLASSES
=============================================================================

1. AuditSettings: Audit trail settings (MCP_* prefix)
   - Optional path to a JSON-lines audit file

2. ServerSettings: Main configuration container (RAILWAY_MCP_* prefix)
   - CLI binary and version cache TTL
   - GraphQL endpoint, auth config path, HTTP timeout
   - Log level and output format, server metadata
   - Contains AuditSettings as nested object

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    RAILWAY_MCP_CLI_BINARY         -> Railway CLI executable (default: railway)
    RAILWAY_MCP_VERSION_CACHE_TTL  -> Seconds a detected CLI version is trusted
    RAILWAY_MCP_GRAPHQL_ENDPOINT   -> Railway public GraphQL API
    RAILWAY_MCP_CONFIG_PATH        -> Railway CLI config file holding the token
    RAILWAY_MCP_HTTP_TIMEOUT       -> GraphQL request timeout in seconds
    RAILWAY_MCP_LOG_LEVEL          -> DEBUG, INFO, WARNING, ERROR, CRITICAL
    RAILWAY_MCP_LOG_JSON           -> Emit JSON log lines instead of console text
    MCP_AUDIT_LOG                  -> Path to audit log file
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GRAPHQL_ENDPOINT = "https://backboard.railway.com/graphql/v2"

# Detected CLI versions are trusted for five minutes
DEFAULT_VERSION_CACHE_TTL = 300.0


# =============================================================================
# AUDIT SETTINGS
# =============================================================================


class AuditSettings(BaseSettings):
    """
    Audit trail configuration.

    Uses the MCP_ prefix shared by other MCP servers so one audit location can
    be configured for several servers running side by side.
    """

    model_config = SettingsConfigDict(env_prefix="MCP_")

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file",
    )
    # If set, every tool invocation appends one JSON line to this file:
    # timestamp, correlation_id, action, target, result, details.
    #
    # When None (default), audit entries go through structlog to stderr.


# =============================================================================
# MAIN SERVER SETTINGS
# =============================================================================


class ServerSettings(BaseSettings):
    """
    Main server configuration.

    USAGE:
    ------
        settings = load_settings()          # Reads from environment
        print(settings.cli_binary)          # "railway"
        print(settings.audit.audit_log)     # None or a Path
    """

    model_config = SettingsConfigDict(
        env_prefix="RAILWAY_MCP_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # RAILWAY CLI
    # -------------------------------------------------------------------------

    cli_binary: str = Field(
        default="railway",
        description="Railway CLI executable name or path",
    )
    # Every generated command line starts with this token. Point it at an
    # absolute path when the CLI is not on the server's PATH.

    version_cache_ttl: float = Field(
        default=DEFAULT_VERSION_CACHE_TTL,
        gt=0,
        description="Seconds a detected CLI version is cached",
    )
    # The version decides which flags are safe to emit (--lines, --filter,
    # deployment list). Upgrading the CLI takes effect after this window or
    # after an explicit refresh.

    # -------------------------------------------------------------------------
    # RAILWAY API
    # -------------------------------------------------------------------------

    graphql_endpoint: str = Field(
        default=DEFAULT_GRAPHQL_ENDPOINT,
        description="Railway GraphQL API endpoint",
    )

    config_path: Path = Field(
        default_factory=lambda: Path.home() / ".railway" / "config.json",
        description="Railway CLI config file containing the auth token",
    )
    # `railway login` writes {"user": {"token": "..."}} here. Template
    # deployment reuses that token rather than asking for a separate one.

    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="GraphQL request timeout in seconds",
    )

    # -------------------------------------------------------------------------
    # SERVER METADATA AND LOGGING
    # -------------------------------------------------------------------------

    server_name: str = Field(default="railway-mcp", description="MCP server name")

    server_version: str = Field(default="0.1.0", description="MCP server version")

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )

    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    audit: AuditSettings = Field(default_factory=AuditSettings)

    @field_validator("graphql_endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Ensure endpoint has a scheme and no trailing slash."""
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> ServerSettings:
    """
    Load settings from environment with validation.

    If RAILWAY_MCP_ENV_FILE is set, additional variables are read from that
    file. Useful for local development.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return ServerSettings(
        _env_file=os.environ.get("RAILWAY_MCP_ENV_FILE"),
    )
