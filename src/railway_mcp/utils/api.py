# ABOUTME: Railway GraphQL API client for template search and deployment
# ABOUTME: Reads the CLI's auth token and retries timed-out requests with backoff

"""
Railway GraphQL API client.

Two operations have no Railway CLI equivalent and go straight to the public
GraphQL endpoint:

    query templates              - unauthenticated, lists every template
    mutation templateDeployV2    - authenticated with the CLI's login token

The token is the one `railway login` stores in ~/.railway/config.json, so the
server never asks the agent for credentials.

Usage:

    async with RailwayApiClient(endpoint, config_path=path) as client:
        result = await client.search_templates("postgres")
        await client.deploy_template(env_id, project_id, t.id, t.serialized_config)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from pathlib import Path
from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from railway_mcp.config import DEFAULT_GRAPHQL_ENDPOINT

logger = structlog.get_logger(__name__)

SOURCE_HEADER = "railway-mcp-server"

# Minimum similarity for a fuzzy match; substring matches always pass
FUZZY_THRESHOLD = 0.7

_WORD = re.compile(r"[\w.+-]+")

TEMPLATES_QUERY = """
query {
  templates {
    edges {
      node {
        id
        name
        description
        category
        serializedConfig
        activeProjects
        health
        totalPayout
        isVerified
      }
    }
  }
}
"""

DEPLOY_TEMPLATE_MUTATION = """
mutation deployTemplate(
  $environmentId: String,
  $projectId: String,
  $templateId: String!,
  $teamId: String,
  $serializedConfig: SerializedTemplateConfig!
) {
  templateDeployV2(input: {
    environmentId: $environmentId,
    projectId: $projectId,
    templateId: $templateId,
    teamId: $teamId,
    serializedConfig: $serializedConfig
  }) {
    projectId
    workflowId
  }
}
"""


class RailwayApiError(Exception):
    """GraphQL, HTTP or credential failure talking to Railway."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


def read_auth_token(config_path: Path | None = None) -> str:
    """
    Read the Railway login token from the CLI config file.

    Args:
        config_path: Path to config.json, ~/.railway/config.json by default.

    Raises:
        RailwayApiError: If the file is missing, unreadable, or has no token.
    """
    path = config_path or Path.home() / ".railway" / "config.json"
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise RailwayApiError(
            "Railway config file not found or invalid. Run 'railway login' to authenticate"
        ) from e

    user = config.get("user") if isinstance(config, dict) else None
    token = user.get("token") if isinstance(user, dict) else None
    if not token:
        raise RailwayApiError(
            "No Railway authentication token found. Run 'railway login' to authenticate"
        )
    return str(token)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Template:
    """A Railway template as returned by the templates query."""

    id: str
    name: str
    description: str = ""
    category: str = ""
    serialized_config: dict[str, Any] = field(default_factory=dict)
    active_projects: int = 0
    health: float = 0
    total_payout: float = 0
    is_verified: bool = False

    @classmethod
    def from_api_response(cls, node: dict[str, Any]) -> Template:
        return cls(
            id=node.get("id", ""),
            name=node.get("name") or "",
            description=node.get("description") or "",
            category=node.get("category") or "",
            serialized_config=node.get("serializedConfig") or {},
            active_projects=node.get("activeProjects") or 0,
            health=node.get("health") or 0,
            total_payout=node.get("totalPayout") or 0,
            is_verified=bool(node.get("isVerified")),
        )

    def sort_key(self) -> tuple[bool, float, int, float]:
        """Verified first, then payout, active projects and health, all descending."""
        return (
            not self.is_verified,
            -self.total_payout,
            -self.active_projects,
            -self.health,
        )


@dataclass
class TemplateSearchResult:
    templates: list[Template]
    filtered_count: int
    total_count: int


@dataclass
class TemplateDeployResponse:
    project_id: str
    workflow_id: str


# =============================================================================
# FUZZY MATCHING
# =============================================================================


def _similarity(query: str, text: str) -> float:
    """
    Best similarity between the query and the text or any of its words.

    Comparing against single words lets "postgress" match a long description
    that mentions "Postgres".
    """
    text = text.lower()
    if not text:
        return 0.0
    if query in text:
        return 1.0
    candidates = [text, *_WORD.findall(text)]
    return max(SequenceMatcher(None, query, candidate).ratio() for candidate in candidates)


def match_score(query: str, template: Template) -> float:
    """Highest similarity of the query against name, description and category."""
    needle = query.strip().lower()
    return max(
        _similarity(needle, template.name),
        _similarity(needle, template.description),
        _similarity(needle, template.category),
    )


def filter_templates(templates: list[Template], query: str) -> list[Template]:
    """Keep templates scoring at least FUZZY_THRESHOLD, best first, ties in input order."""
    scored = [(match_score(query, t), t) for t in templates]
    kept = [(score, t) for score, t in scored if score >= FUZZY_THRESHOLD]
    kept.sort(key=lambda pair: -pair[0])
    return [t for _, t in kept]


# =============================================================================
# CLIENT
# =============================================================================


class RailwayApiClient:
    """
    Async Railway GraphQL client.

    Use as an async context manager so the connection pool is closed:

        async with RailwayApiClient() as client:
            result = await client.search_templates()

    Timeouts are retried up to 3 attempts with exponential backoff. GraphQL
    errors and HTTP error statuses are not retried.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_GRAPHQL_ENDPOINT,
        config_path: Path | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._endpoint = endpoint
        self._config_path = config_path
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> RailwayApiClient:
        self._client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "x-source": SOURCE_HEADER,
            },
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TimeoutException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        """
        POST one GraphQL document and return its `data` object.

        Raises:
            RailwayApiError: On HTTP error status or a GraphQL `errors` array.
            httpx.TimeoutException: When every retry timed out.
            RuntimeError: If used outside `async with`.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        headers = {"Authorization": f"Bearer {token}"} if token else None
        payload: dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables

        log = logger.bind(endpoint=self._endpoint, authenticated=token is not None)
        log.debug("Making Railway GraphQL request")

        response = await self._client.post(self._endpoint, json=payload, headers=headers)

        if response.status_code >= 400:
            log.warning("Railway API error", status=response.status_code, body=response.text[:200])
            raise RailwayApiError(
                f"HTTP {response.status_code}: {response.text[:200] or response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RailwayApiError("Invalid JSON in Railway API response") from e

        errors = body.get("errors")
        if errors:
            message = "; ".join(e.get("message", "Unknown GraphQL error") for e in errors)
            log.warning("Railway GraphQL errors", errors=message)
            raise RailwayApiError(message, status_code=response.status_code)

        return body.get("data") or {}

    async def search_templates(self, query: str | None = None) -> TemplateSearchResult:
        """
        List templates, optionally narrowed by a fuzzy query.

        Templates are sorted before filtering, so equally good matches keep the
        verified/popularity order.

        Raises:
            RailwayApiError: "Failed to search Railway templates: ..." on any failure.
        """
        try:
            data = await self._request(TEMPLATES_QUERY)
        except (RailwayApiError, httpx.HTTPError) as e:
            raise RailwayApiError(
                f"Failed to search Railway templates: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        edges = (data.get("templates") or {}).get("edges") or []
        templates = sorted(
            (Template.from_api_response(edge.get("node") or {}) for edge in edges),
            key=Template.sort_key,
        )
        total = len(templates)

        if not query or not query.strip():
            return TemplateSearchResult(templates=templates, filtered_count=total, total_count=total)

        matched = filter_templates(templates, query)
        logger.debug("Filtered templates", query=query, matched=len(matched), total=total)
        return TemplateSearchResult(
            templates=matched,
            filtered_count=len(matched),
            total_count=total,
        )

    async def deploy_template(
        self,
        environment_id: str,
        project_id: str,
        template_id: str,
        serialized_config: dict[str, Any],
        team_id: str | None = None,
    ) -> TemplateDeployResponse:
        """
        Deploy a template into an existing project and environment.

        Raises:
            RailwayApiError: "Failed to deploy template: ..." on any failure,
                including a missing login token.
        """
        try:
            token = read_auth_token(self._config_path)
            data = await self._request(
                DEPLOY_TEMPLATE_MUTATION,
                variables={
                    "environmentId": environment_id,
                    "projectId": project_id,
                    "templateId": template_id,
                    "teamId": team_id,
                    "serializedConfig": serialized_config,
                },
                token=token,
            )
        except (RailwayApiError, httpx.HTTPError) as e:
            raise RailwayApiError(
                f"Failed to deploy template: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        result = data.get("templateDeployV2") or {}
        logger.info(
            "Template deployed",
            template_id=template_id,
            project_id=project_id,
            workflow_id=result.get("workflowId"),
        )
        return TemplateDeployResponse(
            project_id=result.get("projectId", project_id),
            workflow_id=result.get("workflowId", ""),
        )
