# ABOUTME: Railway CLI wrapper running commands in a workspace and classifying failures
# ABOUTME: Provides async operations for projects, services, environments, variables, logs

"""
Railway CLI client.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module is the server's only path to the `railway` executable. It:

1. RUNS command lines in the agent's workspace directory
2. CHECKS preconditions (CLI installed, logged in, project linked)
3. GATES version-dependent flags through a VersionCache
4. PARSES JSON output where the CLI offers it
5. CLASSIFIES failures into RailwayCliError with remediation text

=============================================================================
WHY A SHELL?
=============================================================================

Commands are built as single strings by utils.commands, where every value is
shell-quoted. They run through /bin/sh with asyncio, so the event loop keeps
serving the MCP transport while a slow `railway up` is running.

=============================================================================
OPERATION SHAPE
=============================================================================

Almost every operation follows the same steps:

    await self.check_status()                 # --version + whoami
    await self.get_linked_project(workspace)  # status --json
    result = await self.run(command, workspace)
    return result.output

and any exception along the way goes through classify_and_raise().
"""

from __future__ import annotations

import asyncio
import errno
import json
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from railway_mcp.utils.commands import (
    CommandLine,
    DeploymentListOptions,
    LogOptions,
    ServiceVariable,
    build_create_environment_command,
    build_deployment_list_command,
    build_domain_command,
    build_init_command,
    build_link_environment_command,
    build_link_project_command,
    build_link_service_command,
    build_list_variables_command,
    build_log_command,
    build_set_variables_command,
    build_up_command,
)
from railway_mcp.utils.errors import (
    ErrorKind,
    RailwayCliError,
    RailwayCommandError,
    classify_and_raise,
)
from railway_mcp.utils.version import (
    DEPLOYMENT_LIST_MIN_VERSION,
    FeatureSupport,
    VersionCache,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger(__name__)

# Exit status /bin/sh uses when the command itself cannot be found
SHELL_COMMAND_NOT_FOUND = 127

_ENVIRONMENT_LINE = re.compile(r"Environment:\s+(\S+)")

# Failures that stop create_project; any other status failure means "not linked"
_SETUP_ERRORS = frozenset(
    {ErrorKind.TOOL_NOT_INSTALLED, ErrorKind.UNAUTHORIZED, ErrorKind.INVALID_TOKEN}
)


@dataclass
class CommandResult:
    """Captured output of a successful command."""

    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


def edge_names(block: dict[str, Any] | None) -> list[str]:
    """Extract node names from a GraphQL-style {"edges": [{"node": {...}}]} block."""
    edges = (block or {}).get("edges") or []
    return [edge["node"]["name"] for edge in edges if edge.get("node", {}).get("name")]


class RailwayCli:
    """
    Async wrapper around the Railway CLI.

    LIFECYCLE:
    ----------
    One instance lives for the whole server process and owns the VersionCache,
    so `railway --version` runs at most once per TTL window.

        cli = RailwayCli(binary="railway", version_cache_ttl=300)
        await cli.get_logs("/work/api", LogOptions(log_type="build"))
    """

    def __init__(self, binary: str = "railway", version_cache_ttl: float = 300.0) -> None:
        """
        Initialize the CLI wrapper.

        Args:
            binary: Executable name or path of the Railway CLI.
            version_cache_ttl: Seconds a detected version is trusted.
        """
        self._binary = binary
        self._version_cache = VersionCache(self._fetch_version, ttl_seconds=version_cache_ttl)

    @property
    def binary(self) -> str:
        return self._binary

    @property
    def version_cache(self) -> VersionCache:
        return self._version_cache

    def _command(self, *subcommand: str) -> str:
        return CommandLine(self._binary, *subcommand).render()

    # =========================================================================
    # SUBPROCESS RUNNER
    # =========================================================================

    async def run(self, command: str, cwd: str | None = None) -> CommandResult:
        """
        Run one command line and capture its output.

        Args:
            command: Fully quoted shell command line.
            cwd: Workspace directory to run in (server's cwd if None).

        Returns:
            CommandResult with decoded stdout and stderr.

        Raises:
            RailwayCommandError: On non-zero exit, missing executable, or a
                workspace path that is not a directory.
        """
        if cwd is not None and not Path(cwd).is_dir():
            raise RailwayCommandError(
                command,
                message=f"Workspace path does not exist or is not a directory: {cwd}",
            )

        if shutil.which(self._binary) is None:
            raise RailwayCommandError(
                command,
                code="ENOENT",
                message=f"{self._binary}: command not found",
            )

        log = logger.bind(command=command, cwd=cwd)
        log.debug("Running Railway CLI command")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RailwayCommandError(
                command,
                code=errno.errorcode.get(e.errno or 0),
                message=str(e),
            ) from e

        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode(errors="replace")
        stderr = stderr_bytes.decode(errors="replace")

        if process.returncode != 0:
            log.warning(
                "Railway CLI command failed",
                exit_code=process.returncode,
                stderr=stderr[:200],
            )
            detail = stderr.strip()
            raise RailwayCommandError(
                command,
                exit_code=process.returncode,
                stdout=stdout,
                stderr=stderr,
                code="ENOENT" if process.returncode == SHELL_COMMAND_NOT_FOUND else None,
                message=f"Command failed: {command}" + (f"\n{detail}" if detail else ""),
            )

        return CommandResult(stdout=stdout, stderr=stderr)

    async def run_json(self, command: str, cwd: str | None = None) -> Any:
        """Run a command and parse its stdout as JSON."""
        result = await self.run(command, cwd)
        try:
            return json.loads(result.stdout.strip())
        except json.JSONDecodeError as e:
            raise RailwayCommandError(
                command,
                exit_code=0,
                message=f"Could not parse JSON output from '{command}': {e.msg}",
            ) from e

    # =========================================================================
    # VERSION AND FEATURES
    # =========================================================================

    async def _fetch_version(self) -> str:
        result = await self.run(self._command("--version"))
        return result.stdout

    async def get_version(self) -> str | None:
        return await self._version_cache.get_version()

    async def refresh_version(self) -> str | None:
        return await self._version_cache.refresh()

    def clear_version_cache(self) -> None:
        self._version_cache.clear()

    async def get_feature_support(self) -> FeatureSupport:
        return await self._version_cache.get_feature_support()

    async def build_log_command(self, options: LogOptions) -> str:
        """Build a logs command gated on the installed CLI's features."""
        features = await self.get_feature_support()
        return build_log_command(options, features, binary=self._binary)

    # =========================================================================
    # PRECONDITIONS
    # =========================================================================

    async def check_status(self) -> None:
        """
        Verify the CLI is installed and the user is logged in.

        Raises:
            RailwayCliError: TOOL_NOT_INSTALLED, UNAUTHORIZED, INVALID_TOKEN, ...
        """
        whoami = self._command("whoami")
        try:
            await self.run(self._command("--version"))
            await self.run(whoami)
        except Exception as e:
            classify_and_raise(e, whoami)

    async def get_linked_project(self, workspace_path: str) -> dict[str, Any]:
        """
        Get the project linked to a workspace.

        Returns:
            Parsed `railway status --json` output.

        Raises:
            RailwayCliError: NO_LINKED_PROJECT when nothing is linked.
        """
        await self.check_status()
        command = self._command("status", "--json")
        try:
            project = await self.run_json(command, workspace_path)
        except Exception as e:
            classify_and_raise(e, command)

        if not isinstance(project, dict):
            raise RailwayCliError(ErrorKind.COMMAND_FAILED, "Invalid response from Railway CLI")
        return project

    async def _run_in_linked_project(self, command: str, workspace_path: str) -> str:
        await self.get_linked_project(workspace_path)
        try:
            result = await self.run(command, workspace_path)
        except Exception as e:
            classify_and_raise(e, command)
        return result.output

    # =========================================================================
    # PROJECTS
    # =========================================================================

    async def list_projects(self) -> list[dict[str, Any]]:
        """List all projects of the logged-in account (`railway list --json`)."""
        command = self._command("list", "--json")
        try:
            await self.check_status()
            projects = await self.run_json(command)
            if not isinstance(projects, list):
                raise RailwayCliError(
                    ErrorKind.COMMAND_FAILED, "Unexpected response format from Railway CLI"
                )
        except Exception as e:
            classify_and_raise(e, command)
        return projects

    async def create_project(self, project_name: str, workspace_path: str) -> str:
        """
        Create a project and link it to the workspace.

        Does nothing when the workspace already has a linked project. A link
        to a deleted or missing project does not count as linked.

        Raises:
            RailwayCliError: TOOL_NOT_INSTALLED, UNAUTHORIZED or INVALID_TOKEN
                before anything is created, or the classified init/link failure.
        """
        try:
            await self.get_linked_project(workspace_path)
        except RailwayCliError as e:
            if e.kind in _SETUP_ERRORS:
                raise
            logger.debug("No usable linked project", kind=e.kind.value)
        else:
            return (
                "A Railway project is already linked to this workspace. "
                "No new project created."
            )

        init_command = build_init_command(project_name, binary=self._binary)
        try:
            init = await self.run(init_command, workspace_path)
            link = await self.run(
                build_link_project_command(project_name, binary=self._binary), workspace_path
            )
        except Exception as e:
            classify_and_raise(e, init_command)
        return f"{init.output}\n{link.output}"

    # =========================================================================
    # SERVICES
    # =========================================================================

    async def list_services(self, workspace_path: str) -> list[str]:
        """Names of the services in the linked project."""
        project = await self.get_linked_project(workspace_path)
        return edge_names(project.get("services"))

    async def link_service(self, workspace_path: str, service_name: str) -> str:
        command = build_link_service_command(service_name, binary=self._binary)
        return await self._run_in_linked_project(command, workspace_path)

    # =========================================================================
    # ENVIRONMENTS
    # =========================================================================

    async def link_environment(
        self,
        workspace_path: str,
        environment_name: str | None = None,
    ) -> str:
        command = build_link_environment_command(environment_name, binary=self._binary)
        return await self._run_in_linked_project(command, workspace_path)

    async def create_environment(
        self,
        workspace_path: str,
        environment_name: str,
        duplicate_environment: str | None = None,
        service_variables: Iterable[ServiceVariable] = (),
    ) -> str:
        command = build_create_environment_command(
            environment_name,
            duplicate_environment=duplicate_environment,
            service_variables=service_variables,
            binary=self._binary,
        )
        return await self._run_in_linked_project(command, workspace_path)

    async def get_current_environment_id(self, workspace_path: str) -> str:
        """
        Resolve the ID of the workspace's current environment.

        `railway status` prints the environment name ("Environment: production");
        `railway status --json` lists environments with their IDs.
        """
        command = self._command("status")
        try:
            project = await self.get_linked_project(workspace_path)
            status = await self.run(command, workspace_path)

            match = _ENVIRONMENT_LINE.search(status.output)
            if not match:
                raise RailwayCliError(
                    ErrorKind.COMMAND_FAILED, "Could not determine current environment name"
                )
            name = match.group(1)

            for edge in (project.get("environments") or {}).get("edges") or []:
                node = edge.get("node") or {}
                if node.get("name") == name:
                    return str(node["id"])

            raise RailwayCliError(
                ErrorKind.COMMAND_FAILED,
                f"Could not determine environment ID for environment: {name}",
            )
        except Exception as e:
            classify_and_raise(e, command)

    # =========================================================================
    # VARIABLES
    # =========================================================================

    async def list_variables(
        self,
        workspace_path: str,
        service: str | None = None,
        environment: str | None = None,
        kv: bool = False,
        json_output: bool = False,
    ) -> str:
        command = build_list_variables_command(
            binary=self._binary,
            service=service,
            environment=environment,
            kv=kv,
            json=json_output,
        )
        return await self._run_in_linked_project(command, workspace_path)

    async def set_variables(
        self,
        workspace_path: str,
        variables: Iterable[str],
        service: str | None = None,
        environment: str | None = None,
        skip_deploys: bool = False,
    ) -> str:
        command = build_set_variables_command(
            variables,
            binary=self._binary,
            service=service,
            environment=environment,
            skip_deploys=skip_deploys,
        )
        return await self._run_in_linked_project(command, workspace_path)

    # =========================================================================
    # DEPLOYMENTS, DOMAINS AND LOGS
    # =========================================================================

    async def deploy(
        self,
        workspace_path: str,
        environment: str | None = None,
        service: str | None = None,
        ci: bool = False,
    ) -> str:
        """
        Upload and deploy the workspace (`railway up`).

        After a successful upload, links the first service of the project so
        follow-up commands (logs, variables) have a service to act on.
        """
        command = build_up_command(
            binary=self._binary, environment=environment, service=service, ci=ci
        )
        deploy_output = await self._run_in_linked_project(command, workspace_path)

        try:
            services = await self.list_services(workspace_path)
            if services:
                first = services[0]
                link = await self.run(
                    build_link_service_command(first, binary=self._binary), workspace_path
                )
                return f"{deploy_output}\n\nService linked: {first}\n{link.output}"
        except (RailwayCliError, RailwayCommandError) as e:
            logger.warning("Could not link a service after deployment", error=str(e))

        return deploy_output

    async def generate_domain(self, workspace_path: str, service: str | None = None) -> str:
        """Generate (or return the existing) domain for the linked project."""
        command = build_domain_command(binary=self._binary, service=service)
        try:
            await self.get_linked_project(workspace_path)
            data = await self.run_json(command, workspace_path)
            domain = data.get("domain") if isinstance(data, dict) else None
            if not domain:
                raise RailwayCliError(
                    ErrorKind.COMMAND_FAILED, "No domain found in Railway CLI JSON response"
                )
        except Exception as e:
            classify_and_raise(e, command)
        return str(domain)

    async def get_logs(self, workspace_path: str, options: LogOptions) -> str:
        """Fetch build or deployment logs, emitting only flags the CLI supports."""
        command = await self.build_log_command(options)
        return await self._run_in_linked_project(command, workspace_path)

    async def list_deployments(
        self,
        workspace_path: str,
        options: DeploymentListOptions,
    ) -> str:
        """
        List deployments (`railway deployment list`).

        Install, login and link failures are classified before the version
        gate, so a missing CLI is not reported as an outdated one.

        Raises:
            RailwayCliError: COMMAND_FAILED when the CLI predates 4.10.0.
        """
        await self.get_linked_project(workspace_path)

        features = await self.get_feature_support()
        if not features.supports_deployment_list:
            version = await self.get_version()
            raise RailwayCliError(
                ErrorKind.COMMAND_FAILED,
                f"Railway CLI version {version or 'unknown'} does not support "
                f"'deployment list' command. "
                f"Please upgrade to version {DEPLOYMENT_LIST_MIN_VERSION} or later.",
            )

        command = build_deployment_list_command(options, binary=self._binary)
        try:
            result = await self.run(command, workspace_path)
        except Exception as e:
            classify_and_raise(e, command)
        return result.output

