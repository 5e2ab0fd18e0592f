# ABOUTME: Railway CLI command line construction with per-value shell quoting
# ABOUTME: Builds logs, deployment list, and management commands gated on CLI features

"""Railway CLI command builders.

Commands run through a shell, so every caller-supplied value (service names,
environment names, filters, variable assignments) is untrusted text. Values
are quoted once, at the moment they are added to the token list, and never
concatenated raw.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable

    from railway_mcp.utils.version import FeatureSupport

LogType = Literal["deployment", "build"]

# Structured JSON log lines are large, so JSON requests default to fewer lines.
DEFAULT_LOG_LINES = 500
DEFAULT_JSON_LOG_LINES = 100

DEFAULT_DEPLOYMENT_LIMIT = 20


def quote_arg(value: object) -> str:
    """Quote a value for POSIX shells, leaving plain words untouched."""
    return shlex.quote(str(value))


def quote_always(value: object) -> str:
    """Quote a value as a single-quoted shell word even when it is a plain word."""
    text = str(value)
    return "'" + text.replace("'", "'\"'\"'") + "'"


class CommandLine:
    """
    Token-list builder for one command line.

    Fixed tokens (subcommands, flag names) go in as-is; values go in quoted.

    Example:
        >>> cmd = CommandLine("railway", "variables")
        >>> cmd.option("--service", "my api").flag("--kv").render()
        "railway variables --service 'my api' --kv"
    """

    def __init__(self, binary: str, *subcommand: str) -> None:
        self._tokens: list[str] = [quote_arg(binary), *subcommand]

    def flag(self, name: str, enabled: bool = True) -> CommandLine:
        if enabled:
            self._tokens.append(name)
        return self

    def option(self, name: str, value: object | None, *, always_quote: bool = False) -> CommandLine:
        """Append `name value`, skipping the pair when value is None or empty."""
        if value is None or value == "":
            return self
        quoted = quote_always(value) if always_quote else quote_arg(value)
        self._tokens.extend([name, quoted])
        return self

    def argument(self, value: object | None) -> CommandLine:
        """Append a positional value, skipping None and empty strings."""
        if value is None or value == "":
            return self
        self._tokens.append(quote_arg(value))
        return self

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    def render(self) -> str:
        return " ".join(self._tokens)

    def __str__(self) -> str:
        return self.render()


# =============================================================================
# LOGS AND DEPLOYMENTS
# =============================================================================


@dataclass
class LogOptions:
    """Options for `railway logs`."""

    log_type: LogType = "deployment"
    deployment_id: str | None = None
    service: str | None = None
    environment: str | None = None
    lines: int | None = None
    filter: str | None = None
    since: str | None = None
    until: str | None = None
    json: bool = False


def build_log_command(
    options: LogOptions,
    features: FeatureSupport,
    binary: str = "railway",
) -> str:
    """
    Build a `railway logs` command line.

    Token order is fixed:
        logs --deployment|--build [--json] [--lines N] [--filter 'TEXT']
        [DEPLOYMENT_ID] [--service S] [--environment E] [--since T] [--until T]

    --lines is always sent when the CLI supports it; without it the CLI
    streams logs forever. Unsupported flags are dropped without error.
    """
    cmd = CommandLine(binary, "logs", f"--{options.log_type}")
    cmd.flag("--json", options.json)

    if features.supports_lines:
        lines = options.lines
        if lines is None:
            lines = DEFAULT_JSON_LOG_LINES if options.json else DEFAULT_LOG_LINES
        cmd.option("--lines", lines)

    if features.supports_filter and options.filter:
        cmd.option("--filter", options.filter, always_quote=True)

    cmd.argument(options.deployment_id)
    cmd.option("--service", options.service)
    cmd.option("--environment", options.environment)
    cmd.option("--since", options.since)
    cmd.option("--until", options.until)
    return cmd.render()


@dataclass
class DeploymentListOptions:
    """Options for `railway deployment list`."""

    service: str | None = None
    environment: str | None = None
    limit: int = DEFAULT_DEPLOYMENT_LIMIT
    json: bool = False


def build_deployment_list_command(
    options: DeploymentListOptions,
    binary: str = "railway",
) -> str:
    """Build `railway deployment list`. Callers check the 4.10.0 gate first."""
    return (
        CommandLine(binary, "deployment", "list")
        .option("--service", options.service)
        .option("--environment", options.environment)
        .option("--limit", options.limit)
        .flag("--json", options.json)
        .render()
    )


def build_up_command(
    binary: str = "railway",
    environment: str | None = None,
    service: str | None = None,
    ci: bool = False,
) -> str:
    return (
        CommandLine(binary, "up")
        .flag("--ci", ci)
        .option("--environment", environment)
        .option("--service", service)
        .render()
    )


def build_domain_command(binary: str = "railway", service: str | None = None) -> str:
    return CommandLine(binary, "domain", "--json").option("--service", service).render()


# =============================================================================
# PROJECTS, SERVICES AND ENVIRONMENTS
# =============================================================================


def build_init_command(project_name: str, binary: str = "railway") -> str:
    return CommandLine(binary, "init").option("--name", project_name).render()


def build_link_project_command(project_name: str, binary: str = "railway") -> str:
    return CommandLine(binary, "link").option("-p", project_name).render()


def build_link_service_command(service_name: str, binary: str = "railway") -> str:
    return CommandLine(binary, "service").argument(service_name).render()


def build_link_environment_command(
    environment_name: str | None = None,
    binary: str = "railway",
) -> str:
    return CommandLine(binary, "environment").argument(environment_name).render()


@dataclass
class ServiceVariable:
    """A variable assignment for one service in a new environment."""

    service: str
    variable: str


def build_create_environment_command(
    environment_name: str,
    duplicate_environment: str | None = None,
    service_variables: Iterable[ServiceVariable] = (),
    binary: str = "railway",
) -> str:
    cmd = CommandLine(binary, "environment", "new").argument(environment_name)
    cmd.option("--duplicate", duplicate_environment)
    for sv in service_variables:
        cmd.flag("--service-variable").argument(sv.service).argument(sv.variable)
    return cmd.render()


# =============================================================================
# VARIABLES
# =============================================================================


def build_list_variables_command(
    binary: str = "railway",
    service: str | None = None,
    environment: str | None = None,
    kv: bool = False,
    json: bool = False,
) -> str:
    return (
        CommandLine(binary, "variables")
        .option("--service", service)
        .option("--environment", environment)
        .flag("--kv", kv)
        .flag("--json", json)
        .render()
    )


def build_set_variables_command(
    variables: Iterable[str],
    binary: str = "railway",
    service: str | None = None,
    environment: str | None = None,
    skip_deploys: bool = False,
) -> str:
    cmd = (
        CommandLine(binary, "variables")
        .option("--service", service)
        .option("--environment", environment)
        .flag("--skip-deploys", skip_deploys)
    )
    for assignment in variables:
        cmd.option("--set", assignment, always_quote=True)
    return cmd.render()
