# ABOUTME: Pytest fixtures and configuration for Railway MCP Server tests
# ABOUTME: Provides scripted CLI runners, sample CLI payloads, and MCP context mocks

from __future__ import annotations

import json
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from railway_mcp.config import AuditSettings, ServerSettings
from railway_mcp.utils.cli import CommandResult, RailwayCli
from railway_mcp.utils.errors import RailwayCommandError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRunner:
    """
    Stand-in for RailwayCli.run keyed by exact command line.

    Values are stdout strings, CommandResult objects, or exceptions to raise.
    Every call is recorded as (command, cwd).
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, str | None]] = []

    async def __call__(self, command: str, cwd: str | None = None) -> CommandResult:
        self.calls.append((command, cwd))
        if command not in self.responses:
            raise RailwayCommandError(
                command,
                exit_code=1,
                message=f"Command failed: {command}",
            )
        response = self.responses[command]
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, CommandResult):
            return response
        return CommandResult(stdout=response, stderr="")

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace(tmp_path: Path) -> str:
    """An existing workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return str(path)


@pytest.fixture
def linked_project() -> dict[str, Any]:
    """`railway status --json` output for a linked project."""
    return {
        "id": "proj-123",
        "name": "my-project",
        "environments": {
            "edges": [
                {"node": {"id": "env-prod", "name": "production"}},
                {"node": {"id": "env-stg", "name": "staging"}},
            ]
        },
        "services": {
            "edges": [
                {"node": {"id": "svc-api", "name": "api"}},
                {"node": {"id": "svc-web", "name": "web"}},
            ]
        },
    }


@pytest.fixture
def base_responses(linked_project: dict[str, Any]) -> dict[str, Any]:
    """Responses for an installed 4.10.0 CLI, logged in, with a linked project."""
    return {
        "railway --version": "railway 4.10.0\n",
        "railway whoami": "Logged in as dev@example.com\n",
        "railway status --json": json.dumps(linked_project),
    }


@pytest.fixture
def make_cli() -> Callable[[dict[str, Any]], tuple[RailwayCli, ScriptedRunner]]:
    """Build a RailwayCli whose subprocess runner is scripted."""

    def factory(responses: dict[str, Any]) -> tuple[RailwayCli, ScriptedRunner]:
        cli = RailwayCli(binary="railway", version_cache_ttl=300)
        runner = ScriptedRunner(responses)
        cli.run = runner  # type: ignore[method-assign]
        return cli, runner

    return factory


@pytest.fixture
def server_settings(tmp_path: Path) -> ServerSettings:
    """Server settings pointing at temporary files."""
    return ServerSettings(
        cli_binary="railway",
        config_path=tmp_path / "config.json",
        audit=AuditSettings(audit_log=None),
    )


@pytest.fixture
def mock_context() -> MagicMock:
    """Create a mock MCP context."""
    ctx = MagicMock()
    ctx.request_id = "test-request-123"
    ctx.report_progress = AsyncMock()
    return ctx


# Integration test fixtures


@pytest.fixture
def railway_binary() -> str:
    """Path of an installed Railway CLI, skipping the test when absent."""
    binary = shutil.which("railway")
    if binary is None:
        pytest.skip("Railway CLI not installed")
    return binary
