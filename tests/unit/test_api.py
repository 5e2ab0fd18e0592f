# ABOUTME: Unit tests for the Railway GraphQL client
# ABOUTME: Tests token discovery, template ordering, fuzzy search, and template deployment

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from railway_mcp.utils.api import (
    SOURCE_HEADER,
    RailwayApiClient,
    RailwayApiError,
    Template,
    filter_templates,
    match_score,
    read_auth_token,
)

ENDPOINT = "https://backboard.railway.com/graphql/v2"


def node(
    name: str,
    *,
    verified: bool = False,
    payout: float = 0,
    projects: int = 0,
    health: float = 0,
    description: str = "",
    category: str = "Other",
) -> dict[str, Any]:
    return {
        "id": f"tpl-{name.lower()}",
        "name": name,
        "description": description,
        "category": category,
        "serializedConfig": {"services": {name: {}}},
        "activeProjects": projects,
        "health": health,
        "totalPayout": payout,
        "isVerified": verified,
    }


def templates_payload(*nodes: dict[str, Any]) -> dict[str, Any]:
    return {"data": {"templates": {"edges": [{"node": n} for n in nodes]}}}


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"user": {"token": "secret-token"}}))
    return path


@pytest.mark.unit
class TestReadAuthToken:
    """Tests for reading the CLI login token."""

    def test_reads_token(self, token_file: Path):
        assert read_auth_token(token_file) == "secret-token"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(RailwayApiError) as exc_info:
            read_auth_token(tmp_path / "missing.json")

        assert str(exc_info.value) == (
            "Railway config file not found or invalid. Run 'railway login' to authenticate"
        )

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(RailwayApiError, match="config file not found or invalid"):
            read_auth_token(path)

    def test_no_token(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"user": {}}))

        with pytest.raises(RailwayApiError) as exc_info:
            read_auth_token(path)

        assert str(exc_info.value) == (
            "No Railway authentication token found. Run 'railway login' to authenticate"
        )


@pytest.mark.unit
class TestTemplate:
    """Tests for Template parsing and matching."""

    def test_from_api_response(self):
        template = Template.from_api_response(
            node("Postgres", verified=True, payout=10, projects=5, health=90)
        )

        assert template.id == "tpl-postgres"
        assert template.is_verified is True
        assert template.total_payout == 10
        assert template.active_projects == 5
        assert template.serialized_config == {"services": {"Postgres": {}}}

    def test_from_api_response_with_nulls(self):
        template = Template.from_api_response(
            {"id": "t", "name": "X", "description": None, "totalPayout": None}
        )

        assert template.description == ""
        assert template.total_payout == 0

    def test_substring_scores_full(self):
        template = Template(id="1", name="PostgreSQL Cluster")
        assert match_score("postgres", template) == 1.0

    def test_typo_still_matches(self):
        template = Template(id="1", name="Redis", description="In-memory data store")
        assert match_score("rediss", template) >= 0.7

    def test_unrelated_does_not_match(self):
        template = Template(id="1", name="Redis", category="Databases")
        assert match_score("wordpress", template) < 0.7

    def test_filter_orders_best_first(self):
        close = Template(id="1", name="Postgre Backup")
        exact = Template(id="2", name="Postgres")
        other = Template(id="3", name="Umami")

        assert filter_templates([close, exact, other], "postgres") == [exact, close]


@pytest.mark.unit
class TestSearchTemplates:
    """Tests for searching templates over GraphQL."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_sorted_verified_then_popularity(self):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(
                200,
                json=templates_payload(
                    node("Low", payout=1),
                    node("Verified", verified=True),
                    node("Rich", payout=50),
                    node("Busy", payout=1, projects=10),
                    node("Healthy", payout=1, health=99),
                ),
            )
        )

        async with RailwayApiClient(ENDPOINT) as client:
            result = await client.search_templates()

        assert [t.name for t in result.templates] == ["Verified", "Rich", "Busy", "Healthy", "Low"]
        assert result.filtered_count == 5
        assert result.total_count == 5

    @pytest.mark.asyncio
    @respx.mock
    async def test_blank_query_returns_all(self):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(200, json=templates_payload(node("A"), node("B")))
        )

        async with RailwayApiClient(ENDPOINT) as client:
            result = await client.search_templates("   ")

        assert result.filtered_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_query_filters(self):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(
                200,
                json=templates_payload(
                    node("Postgres", category="Databases"),
                    node("Ghost", description="Blogging platform"),
                    node("MySQL", category="Databases"),
                ),
            )
        )

        async with RailwayApiClient(ENDPOINT) as client:
            result = await client.search_templates("database")

        assert {t.name for t in result.templates} == {"Postgres", "MySQL"}
        assert result.filtered_count == 2
        assert result.total_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_source_header_without_auth(self):
        route = respx.post(ENDPOINT).mock(
            return_value=httpx.Response(200, json=templates_payload())
        )

        async with RailwayApiClient(ENDPOINT) as client:
            await client.search_templates()

        request = route.calls.last.request
        assert request.headers["x-source"] == SOURCE_HEADER
        assert "authorization" not in request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error(self):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(503, text="unavailable"))

        async with RailwayApiClient(ENDPOINT) as client:
            with pytest.raises(RailwayApiError) as exc_info:
                await client.search_templates()

        assert str(exc_info.value).startswith("Failed to search Railway templates: ")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    @respx.mock
    async def test_graphql_errors(self):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(200, json={"errors": [{"message": "Problem processing"}]})
        )

        async with RailwayApiClient(ENDPOINT) as client:
            with pytest.raises(RailwayApiError, match="Problem processing"):
                await client.search_templates()

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = RailwayApiClient(ENDPOINT)

        with pytest.raises(RuntimeError, match="Client not initialized"):
            await client.search_templates()


@pytest.mark.unit
class TestDeployTemplate:
    """Tests for the templateDeployV2 mutation."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_deploys_with_token(self, token_file: Path):
        route = respx.post(ENDPOINT).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"templateDeployV2": {"projectId": "proj-1", "workflowId": "wf-9"}}},
            )
        )

        async with RailwayApiClient(ENDPOINT, config_path=token_file) as client:
            result = await client.deploy_template(
                environment_id="env-1",
                project_id="proj-1",
                template_id="tpl-postgres",
                serialized_config={"services": {}},
            )

        assert result.project_id == "proj-1"
        assert result.workflow_id == "wf-9"

        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer secret-token"
        body = json.loads(request.content)
        assert "templateDeployV2" in body["query"]
        assert body["variables"] == {
            "environmentId": "env-1",
            "projectId": "proj-1",
            "templateId": "tpl-postgres",
            "teamId": None,
            "serializedConfig": {"services": {}},
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_token_is_wrapped(self, tmp_path: Path):
        route = respx.post(ENDPOINT)

        async with RailwayApiClient(ENDPOINT, config_path=tmp_path / "none.json") as client:
            with pytest.raises(RailwayApiError) as exc_info:
                await client.deploy_template("env", "proj", "tpl", {})

        assert str(exc_info.value) == (
            "Failed to deploy template: Railway config file not found or invalid. "
            "Run 'railway login' to authenticate"
        )
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_api_error_is_wrapped(self, token_file: Path):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(200, json={"errors": [{"message": "Not Authorized"}]})
        )

        async with RailwayApiClient(ENDPOINT, config_path=token_file) as client:
            with pytest.raises(RailwayApiError, match="^Failed to deploy template: Not Authorized$"):
                await client.deploy_template("env", "proj", "tpl", {})
