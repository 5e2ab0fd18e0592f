# ABOUTME: FastMCP server initialization and main entry point
# ABOUTME: Exposes Railway CLI and template operations as MCP tools and resources

"""Railway MCP Server - Railway CLI operations for coding agents."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

import structlog
from mcp.server.fastmcp import Context, FastMCP
from pydantic import BaseModel, ConfigDict, Field

from railway_mcp.config import ServerSettings, load_settings
from railway_mcp.utils.api import RailwayApiClient, RailwayApiError, Template
from railway_mcp.utils.cli import RailwayCli, edge_names
from railway_mcp.utils.commands import DeploymentListOptions, LogOptions, ServiceVariable
from railway_mcp.utils.errors import RailwayCliError
from railway_mcp.utils.logging import AuditLogger, configure_logging, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

# Session, lifespan state and request types
MCPContext = Context[Any, Any, Any]
logger = structlog.get_logger(__name__)

# Global state (initialized in lifespan)
_settings: ServerSettings | None = None
_cli: RailwayCli | None = None
_api_client: RailwayApiClient | None = None
_audit_logger: AuditLogger | None = None


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage server lifecycle: load config, detect the CLI version, cleanup on shutdown."""
    global _settings, _cli, _api_client, _audit_logger

    logger.info("Starting Railway MCP Server")

    _settings = load_settings()
    configure_logging(level=_settings.log_level, json_output=_settings.log_json)
    _audit_logger = AuditLogger(_settings.audit.audit_log)
    _cli = RailwayCli(
        binary=_settings.cli_binary,
        version_cache_ttl=_settings.version_cache_ttl,
    )

    _api_client = RailwayApiClient(
        endpoint=_settings.graphql_endpoint,
        config_path=_settings.config_path,
        timeout=_settings.http_timeout,
    )
    await _api_client.__aenter__()

    version = await _cli.get_version()
    if version:
        logger.info("Detected Railway CLI", version=version, binary=_settings.cli_binary)
    else:
        logger.warning("Railway CLI version unknown", binary=_settings.cli_binary)

    yield {"settings": _settings, "cli": _cli}

    await _api_client.__aexit__(None, None, None)
    _api_client = None
    logger.info("Railway MCP Server stopped")


mcp = FastMCP("railway-mcp", lifespan=lifespan)


def get_cli() -> RailwayCli:
    """Get the Railway CLI wrapper."""
    if not _cli:
        raise RuntimeError("Server not initialized")
    return _cli


def get_api_client() -> RailwayApiClient:
    """Get the Railway GraphQL client."""
    if not _api_client:
        raise RuntimeError("Server not initialized")
    return _api_client


def get_settings() -> ServerSettings:
    """Get server settings."""
    if not _settings:
        raise RuntimeError("Server not initialized")
    return _settings


def get_audit_logger() -> AuditLogger:
    """Get audit logger for recording operations."""
    if not _audit_logger:
        raise RuntimeError("Server not initialized")
    return _audit_logger


def _start(ctx: MCPContext) -> None:
    set_correlation_id(str(ctx.request_id) if hasattr(ctx, "request_id") else "")


def format_failure(title: str, error: Exception | str, next_steps: Iterable[str]) -> str:
    """Render a failed tool call for the agent."""
    lines = [title, "", f"Error: {error}", "", "Next Steps:"]
    lines.extend(f"- {step}" for step in next_steps)
    return "\n".join(lines)


class WorkspaceParams(BaseModel):
    """Parameters shared by tools that only need a workspace."""

    workspace_path: str = Field(description="Path to the workspace linked to a Railway project")


# =============================================================================
# STATUS AND PROJECTS
# =============================================================================


@mcp.tool()
async def check_railway_status(ctx: MCPContext) -> str:
    """
    Check whether the Railway CLI is installed and the user is logged in.

    Run this before other Railway tools to verify the CLI setup.
    """
    _start(ctx)

    try:
        await get_cli().check_status()
        get_audit_logger().log_read("check_railway_status", "cli")
        return (
            "Railway CLI Status Check Passed\n\n"
            "- Railway CLI is installed and accessible\n"
            "- User is authenticated and logged in\n\n"
            "You can now use other Railway tools to manage your projects."
        )

    except RailwayCliError as e:
        get_audit_logger().log_error("check_railway_status", "cli", str(e))
        return format_failure(
            "Railway CLI Status Check Failed",
            e,
            [
                "If Railway CLI is not installed: Install it from https://docs.railway.com/guides/cli",
                "If not logged in: Run `railway login` to authenticate",
                "If token is expired: Run `railway login` to refresh your authentication",
            ],
        )


def _format_date(value: str | None) -> str:
    if not value:
        return "unknown"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


@mcp.tool()
async def list_projects(ctx: MCPContext) -> str:
    """List all Railway projects for the currently logged in account."""
    _start(ctx)

    try:
        projects = await get_cli().list_projects()
        get_audit_logger().log_read("list_projects", "account")

        if not projects:
            return "No Railway projects found. Use create_project_and_link to create one."

        entries = []
        for project in projects:
            team = (project.get("team") or {}).get("name") or "Unknown"
            entries.append(
                f"{project.get('name')} (ID: {project.get('id')})\n"
                f"Team: {team}\n"
                f"Environments: {', '.join(edge_names(project.get('environments')))}\n"
                f"Services: {', '.join(edge_names(project.get('services')))}\n"
                f"Created: {_format_date(project.get('createdAt'))}\n"
                f"Updated: {_format_date(project.get('updatedAt'))}"
            )

        return (
            f"Found {len(projects)} Railway project(s):\n\n"
            + "\n\n".join(entries)
            + "\n\nNote: To link to one of these projects, run `railway link` manually."
        )

    except RailwayCliError as e:
        get_audit_logger().log_error("list_projects", "account", str(e))
        return format_failure(
            "Failed to list Railway projects",
            e,
            [
                "Ensure you are logged into Railway CLI (`railway login`)",
                "Check that your authentication token is valid",
                "Verify you have permissions to view projects",
            ],
        )


class CreateProjectParams(BaseModel):
    """Parameters for create_project_and_link tool."""

    project_name: str = Field(min_length=1, description="Name of the project to create")
    workspace_path: str = Field(description="Path to the workspace to create the project in")


@mcp.tool()
async def create_project_and_link(params: CreateProjectParams, ctx: MCPContext) -> str:
    """Create a new Railway project and link it to the workspace directory."""
    _start(ctx)

    try:
        result = await get_cli().create_project(params.project_name, params.workspace_path)
        get_audit_logger().log_write(
            "create_project_and_link",
            params.workspace_path,
            "created",
            {"project": params.project_name},
        )
        return (
            f'Successfully created Railway project "{params.project_name}":\n\n{result}\n\n'
            "This project is now linked and all commands will run in its context. "
            "No need to run `railway link` again."
        )

    except RailwayCliError as e:
        get_audit_logger().log_error("create_project_and_link", params.workspace_path, str(e))
        return format_failure(
            "Failed to create Railway project",
            e,
            [
                "Ensure you are logged into Railway CLI (`railway login`)",
                "Check that the project name is valid and unique",
                "Verify you have permissions to create projects",
                "Ensure the workspace path is accessible",
            ],
        )


# =============================================================================
# SERVICES AND ENVIRONMENTS
# =============================================================================


@mcp.tool()
async def list_services(params: WorkspaceParams, ctx: MCPContext) -> str:
    """List all services in the Railway project linked to the workspace."""
    _start(ctx)

    try:
        services = await get_cli().list_services(params.workspace_path)
        get_audit_logger().log_read("list_services", params.workspace_path)

        if not services:
            return (
                "No services found for the currently linked Railway project.\n\n"
                "Next Steps:\n"
                "- Check that your project has services created\n"
                "- Create a new service through the Railway dashboard or CLI"
            )

        listing = "\n".join(f"{i}. {name}" for i, name in enumerate(services, start=1))
        return (
            f"Found {len(services)} service(s) in the linked Railway project:\n\n{listing}\n\n"
            "Note: To link to a specific service, use the link_service tool."
        )

    except RailwayCliError as e:
        get_audit_logger().log_error("list_services", params.workspace_path, str(e))
        return format_failure(
            "Failed to list Railway services",
            e,
            [
                "Ensure you are logged into Railway CLI (`railway login`)",
                "Check that you have a project linked (`railway link`)",
                "Verify you have permissions to view services",
            ],
        )


class LinkServiceParams(BaseModel):
    """Parameters for link_service tool."""

    workspace_path: str = Field(description="Path to the workspace to link the service to")
    service_name: str | None = Field(
        default=None,
        description="Service to link. Omit to list available services",
    )


@mcp.tool()
async def link_service(params: LinkServiceParams, ctx: MCPContext) -> str:
    """
    Link a service in the current Railway project to the workspace.

    If no service name is given, lists the services available for linking.
    """
    _start(ctx)
    cli = get_cli()

    try:
        if not params.service_name:
            services = await cli.list_services(params.workspace_path)
            get_audit_logger().log_read("link_service", params.workspace_path)
            if not services:
                return "No services found in this project. Create a service first."
            listing = "\n".join(f"- {name}" for name in services)
            return f"Available services:\n{listing}\n\nRun with a service name to link it."

        result = await cli.link_service(params.workspace_path, params.service_name)
        get_audit_logger().log_write(
            "link_service", params.workspace_path, "linked", {"service": params.service_name}
        )
        return f"Successfully linked service '{params.service_name}':\n\n{result}"

    except RailwayCliError as e:
        get_audit_logger().log_error("link_service", params.workspace_path, str(e))
        return format_failure(
            "Failed to link Railway service",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the service name is correct",
                "Run `railway link` to ensure proper project connection",
            ],
        )


class LinkEnvironmentParams(BaseModel):
    """Parameters for link_environment tool."""

    workspace_path: str = Field(description="Path to the workspace to link the environment to")
    environment_name: str = Field(description="Environment name to link to")


@mcp.tool()
async def link_environment(params: LinkEnvironmentParams, ctx: MCPContext) -> str:
    """Link the workspace to a specific Railway environment."""
    _start(ctx)

    try:
        result = await get_cli().link_environment(params.workspace_path, params.environment_name)
        get_audit_logger().log_write(
            "link_environment",
            params.workspace_path,
            "linked",
            {"environment": params.environment_name},
        )
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("link_environment", params.workspace_path, str(e))
        return format_failure(
            "Failed to link environment",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the environment name is correct",
                "Run `railway environment` to see available environments",
            ],
        )


class ServiceVariableParam(BaseModel):
    """A variable to assign to one service in the new environment."""

    service: str = Field(description="Service name or UUID")
    variable: str = Field(description="Variable assignment, e.g. 'BACKEND_PORT=3000'")


class CreateEnvironmentParams(BaseModel):
    """Parameters for create_environment tool."""

    workspace_path: str = Field(description="Path to the workspace to create the environment in")
    environment_name: str = Field(min_length=1, description="Name for the new environment")
    duplicate_environment: str | None = Field(
        default=None, description="Existing environment to duplicate"
    )
    service_variables: list[ServiceVariableParam] = Field(
        default_factory=list,
        description="Service variables for the new environment (only when duplicating)",
    )


@mcp.tool()
async def create_environment(params: CreateEnvironmentParams, ctx: MCPContext) -> str:
    """
    Create a new environment in the linked Railway project.

    Optionally duplicates an existing environment and assigns service variables.
    """
    _start(ctx)

    try:
        result = await get_cli().create_environment(
            params.workspace_path,
            params.environment_name,
            duplicate_environment=params.duplicate_environment,
            service_variables=[
                ServiceVariable(service=sv.service, variable=sv.variable)
                for sv in params.service_variables
            ],
        )
        get_audit_logger().log_write(
            "create_environment",
            params.workspace_path,
            "created",
            {
                "environment": params.environment_name,
                "duplicate": params.duplicate_environment,
            },
        )
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("create_environment", params.workspace_path, str(e))
        return format_failure(
            "Failed to create environment",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the environment name is valid and unique",
                "If duplicating, ensure the source environment exists",
                "If using service variables, ensure the service exists in the source environment",
            ],
        )


# =============================================================================
# VARIABLES
# =============================================================================


class ListVariablesParams(BaseModel):
    """Parameters for list_variables tool."""

    model_config = ConfigDict(populate_by_name=True)

    workspace_path: str = Field(description="Path to the workspace to list variables from")
    service: str | None = Field(default=None, description="Service to show variables for")
    environment: str | None = Field(default=None, description="Environment to show variables for")
    kv: bool = Field(default=False, description="Show variables in KEY=value format")
    json_output: bool = Field(default=False, alias="json", description="Output in JSON format")


@mcp.tool()
async def list_variables(params: ListVariablesParams, ctx: MCPContext) -> str:
    """Show variables for the active environment."""
    _start(ctx)

    try:
        result = await get_cli().list_variables(
            params.workspace_path,
            service=params.service,
            environment=params.environment,
            kv=params.kv,
            json_output=params.json_output,
        )
        get_audit_logger().log_read("list_variables", params.workspace_path)
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("list_variables", params.workspace_path, str(e))
        return format_failure(
            "Failed to list Railway variables",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the service and environment exist",
                "Verify you have permissions to view variables",
            ],
        )


class SetVariablesParams(BaseModel):
    """Parameters for set_variables tool."""

    workspace_path: str = Field(description="Path to the workspace to set variables in")
    variables: list[str] = Field(
        min_length=1, description="List of 'KEY=value' variable assignments"
    )
    service: str | None = Field(default=None, description="Service to set variables for")
    environment: str | None = Field(default=None, description="Environment to set variables for")
    skip_deploys: bool = Field(
        default=False, description="Do not trigger deploys when setting variables"
    )


@mcp.tool()
async def set_variables(params: SetVariablesParams, ctx: MCPContext) -> str:
    """Set variables for the active environment."""
    _start(ctx)

    try:
        result = await get_cli().set_variables(
            params.workspace_path,
            params.variables,
            service=params.service,
            environment=params.environment,
            skip_deploys=params.skip_deploys,
        )
        # Only variable names are audited; values may be secrets
        get_audit_logger().log_write(
            "set_variables",
            params.workspace_path,
            "set",
            {
                "keys": [v.split("=", 1)[0] for v in params.variables],
                "service": params.service,
                "skip_deploys": params.skip_deploys,
            },
        )
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("set_variables", params.workspace_path, str(e))
        return format_failure(
            "Failed to set Railway variables",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the service and environment exist",
                "Ensure variable format is correct (KEY=value)",
            ],
        )


# =============================================================================
# DEPLOYMENTS, DOMAINS AND LOGS
# =============================================================================


class DeployParams(BaseModel):
    """Parameters for deploy tool."""

    workspace_path: str = Field(description="Path to the workspace to deploy")
    ci: bool = Field(
        default=False,
        description="Stream build logs only, then exit (equivalent to setting $CI=true)",
    )
    environment: str | None = Field(
        default=None, description="Environment to deploy to (defaults to linked environment)"
    )
    service: str | None = Field(
        default=None, description="Service to deploy to (defaults to linked service)"
    )


@mcp.tool()
async def deploy(params: DeployParams, ctx: MCPContext) -> str:
    """Upload and deploy the workspace directory to Railway."""
    _start(ctx)

    try:
        await ctx.report_progress(0, 1, f"Deploying {params.workspace_path}")
        result = await get_cli().deploy(
            params.workspace_path,
            environment=params.environment,
            service=params.service,
            ci=params.ci,
        )
        await ctx.report_progress(1, 1, "Deployment triggered")

        get_audit_logger().log_write(
            "deploy",
            params.workspace_path,
            "deployed",
            {"ci": params.ci, "service": params.service, "environment": params.environment},
        )
        return (
            "Successfully triggered a deployment for Railway project. "
            f"This process will take some time to complete:\n\n{result}"
        )

    except RailwayCliError as e:
        get_audit_logger().log_error("deploy", params.workspace_path, str(e))
        return format_failure(
            "Failed to deploy Railway project",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the environment and service exist",
                "Verify your project has the necessary files for deployment",
            ],
        )


class GenerateDomainParams(BaseModel):
    """Parameters for generate_domain tool."""

    workspace_path: str = Field(description="Path to the workspace to generate a domain for")
    service: str | None = Field(default=None, description="Service to generate the domain for")


@mcp.tool()
async def generate_domain(params: GenerateDomainParams, ctx: MCPContext) -> str:
    """
    Generate a domain for the linked Railway project.

    Returns the existing domain if one is already assigned.
    """
    _start(ctx)

    try:
        domain = await get_cli().generate_domain(params.workspace_path, service=params.service)
        get_audit_logger().log_write(
            "generate_domain", params.workspace_path, "generated", {"domain": domain}
        )
        target = f" for service '{params.service}'" if params.service else ""
        return f"Successfully generated Railway domain{target}:\n\n{domain}"

    except RailwayCliError as e:
        get_audit_logger().log_error("generate_domain", params.workspace_path, str(e))
        return format_failure(
            "Failed to generate Railway domain",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that you have permissions to generate domains",
                "Verify the project has been deployed at least once",
            ],
        )


class GetLogsParams(BaseModel):
    """Parameters for get_logs tool."""

    model_config = ConfigDict(populate_by_name=True)

    workspace_path: str = Field(description="Path to the workspace to get logs from")
    log_type: Literal["build", "deploy"] = Field(
        description="'build' for build logs or 'deploy' for deployment logs"
    )
    deployment_id: str | None = Field(
        default=None, description="Deployment ID. Omit for the latest deployment"
    )
    service: str | None = Field(default=None, description="Service (defaults to linked service)")
    environment: str | None = Field(
        default=None, description="Environment (defaults to linked environment)"
    )
    lines: int | None = Field(
        default=None,
        ge=1,
        description="Number of log lines (Railway CLI 4.9.0+; ignored on older versions)",
    )
    filter: str | None = Field(
        default=None,
        description=(
            "Filter logs by text or attributes, e.g. '@level:error' "
            "(Railway CLI 4.9.0+; ignored on older versions)"
        ),
    )
    since: str | None = Field(default=None, description="Only logs after this time")
    until: str | None = Field(default=None, description="Only logs before this time")
    json_output: bool = Field(
        default=False, alias="json", description="Return structured JSON log lines"
    )


@mcp.tool()
async def get_logs(params: GetLogsParams, ctx: MCPContext) -> str:
    """
    Get build or deployment logs for the linked Railway project.

    Without a deployment ID, logs of the latest deployment are returned.
    Line limits and filters are applied only when the installed CLI supports them.
    """
    _start(ctx)

    options = LogOptions(
        log_type="build" if params.log_type == "build" else "deployment",
        deployment_id=params.deployment_id,
        service=params.service,
        environment=params.environment,
        lines=params.lines,
        filter=params.filter,
        since=params.since,
        until=params.until,
        json=params.json_output,
    )

    try:
        result = await get_cli().get_logs(params.workspace_path, options)
        get_audit_logger().log_read("get_logs", params.workspace_path)
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("get_logs", params.workspace_path, str(e))
        return format_failure(
            f"Failed to get Railway {params.log_type} logs",
            e,
            [
                "Ensure you have a Railway project linked",
                "Check that the deployment ID is valid (if provided)",
                "Verify the service and environment exist",
            ],
        )


class ListDeploymentsParams(BaseModel):
    """Parameters for list_deployments tool."""

    model_config = ConfigDict(populate_by_name=True)

    workspace_path: str = Field(description="Path to the workspace to list deployments from")
    service: str | None = Field(
        default=None, description="Service name or ID (defaults to linked service)"
    )
    environment: str | None = Field(
        default=None, description="Environment (defaults to linked environment)"
    )
    limit: int = Field(default=20, ge=1, le=1000, description="Maximum deployments to show")
    json_output: bool = Field(
        default=False,
        alias="json",
        description="Return deployments as JSON with IDs and statuses",
    )


@mcp.tool()
async def list_deployments(params: ListDeploymentsParams, ctx: MCPContext) -> str:
    """List deployments for a Railway service. Requires Railway CLI 4.10.0+."""
    _start(ctx)

    try:
        result = await get_cli().list_deployments(
            params.workspace_path,
            DeploymentListOptions(
                service=params.service,
                environment=params.environment,
                limit=params.limit,
                json=params.json_output,
            ),
        )
        get_audit_logger().log_read("list_deployments", params.workspace_path)
        return result

    except RailwayCliError as e:
        get_audit_logger().log_error("list_deployments", params.workspace_path, str(e))
        return format_failure(
            "Failed to list Railway deployments",
            e,
            [
                "Ensure you are logged into Railway CLI (`railway login`)",
                "Check that you have a project linked (`railway link`)",
                "Upgrade the Railway CLI if it is older than 4.10.0",
            ],
        )


# =============================================================================
# TEMPLATES
# =============================================================================


class DeployTemplateParams(BaseModel):
    """Parameters for deploy_template tool."""

    workspace_path: str = Field(description="Path to the workspace linked to the target project")
    search_query: str = Field(description="Search templates by name, description, or category")
    template_index: int | None = Field(
        default=None,
        description="1-based index of the template to deploy (required if several match)",
    )
    team_id: str | None = Field(default=None, description="Team ID (optional)")


def _describe_template(index: int, template: Template) -> str:
    badge = "verified" if template.is_verified else "unverified"
    return (
        f"{index}. {template.name} ({badge})\n"
        f"   ID: {template.id}\n"
        f"   Description: {template.description or 'No description available'}\n"
        f"   Category: {template.category}\n"
        f"   Active Projects: {template.active_projects} | Health: {template.health} | "
        f"Payout: {template.total_payout}"
    )


@mcp.tool()
async def deploy_template(params: DeployTemplateParams, ctx: MCPContext) -> str:
    """
    Search Railway templates and deploy one into the linked project and environment.

    With several matches and no template_index, returns the numbered list so
    the caller can pick one.
    """
    _start(ctx)
    cli = get_cli()
    api = get_api_client()

    try:
        search = await api.search_templates(params.search_query)
        templates = search.templates

        if not templates:
            return (
                f'No templates found matching "{params.search_query}".\n\n'
                f"Total templates available: {search.total_count}\n\n"
                "Suggestions:\n"
                "- Try a different search term\n"
                "- Use broader keywords"
            )

        if len(templates) > 1 and params.template_index is None:
            listing = "\n\n".join(
                _describe_template(i, t) for i, t in enumerate(templates, start=1)
            )
            return (
                f'Multiple templates found matching "{params.search_query}":\n\n'
                f"Showing {search.filtered_count} of {search.total_count} templates:\n\n"
                f"{listing}\n\n"
                f"Please specify which template to deploy with template_index: "
                f"[1-{len(templates)}]"
            )

        if len(templates) == 1:
            template = templates[0]
        else:
            index = params.template_index or 0
            if index < 1 or index > len(templates):
                return (
                    f"Invalid template index: {params.template_index}\n\n"
                    f"Valid range: 1-{len(templates)}\n\n"
                    "Please provide a valid template index."
                )
            template = templates[index - 1]

        await ctx.report_progress(0, 2, f"Resolving project for {template.name}")
        project = await cli.get_linked_project(params.workspace_path)
        environment_id = await cli.get_current_environment_id(params.workspace_path)

        await ctx.report_progress(1, 2, f"Deploying template {template.name}")
        result = await api.deploy_template(
            environment_id=environment_id,
            project_id=str(project.get("id")),
            template_id=template.id,
            serialized_config=template.serialized_config,
            team_id=params.team_id,
        )
        await ctx.report_progress(2, 2, "Template deployed")

        get_audit_logger().log_write(
            "deploy_template",
            params.workspace_path,
            "deployed",
            {"template_id": template.id, "workflow_id": result.workflow_id},
        )
        return (
            "Successfully deployed Railway template:\n\n"
            f"Template: {template.name}\n"
            f"Template ID: {template.id}\n"
            f"Project: {project.get('name')} ({project.get('id')})\n"
            f"Environment: {environment_id}\n"
            f"Workflow ID: {result.workflow_id}\n\n"
            "The template has been deployed to the current Railway project and environment."
        )

    except (RailwayCliError, RailwayApiError) as e:
        get_audit_logger().log_error("deploy_template", params.workspace_path, str(e))
        return format_failure(
            "Failed to search/deploy Railway template",
            e,
            [
                "Check your internet connection",
                "Verify that Railway's API is accessible",
                "Make sure you're authenticated with Railway (`railway login`)",
                "Run `railway link` if no project is linked to this workspace",
            ],
        )


# =============================================================================
# MCP RESOURCES
# =============================================================================


@mcp.resource("railway://cli")
async def get_cli_resource() -> str:
    """Get the detected Railway CLI version and the features it enables."""
    cli = get_cli()
    version = await cli.get_version()
    features = await cli.get_feature_support()

    return (
        "Railway CLI:\n"
        f"  Binary: {cli.binary}\n"
        f"  Version: {version or 'unknown'}\n"
        f"  Log line limits (--lines): {features.supports_lines}\n"
        f"  Log filters (--filter): {features.supports_filter}\n"
        f"  Deployment list: {features.supports_deployment_list}"
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main() -> None:
    """Run the Railway MCP server over stdio."""
    configure_logging(level="INFO")
    logger.info("Railway MCP Server starting")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
