# ABOUTME: Unit tests for Railway CLI command line construction
# ABOUTME: Tests flag gating, token order, defaults, and shell quoting of values

from __future__ import annotations

import shlex

import pytest

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
    quote_always,
    quote_arg,
)
from railway_mcp.utils.version import FeatureSupport, feature_support_for

MODERN = feature_support_for("4.10.0")
LEGACY = feature_support_for("4.8.0")
UNKNOWN = feature_support_for(None)


@pytest.mark.unit
class TestQuoting:
    """Tests for shell quoting helpers."""

    def test_plain_word_unquoted(self):
        assert quote_arg("api") == "api"

    def test_spaces_quoted(self):
        assert quote_arg("my api") == "'my api'"

    def test_metacharacters_neutralized(self):
        value = "x; rm -rf /"
        assert shlex.split(quote_arg(value)) == [value]

    def test_quote_always_wraps_plain_word(self):
        assert quote_always("error") == "'error'"

    def test_quote_always_escapes_single_quote(self):
        value = "it's $HOME"
        quoted = quote_always(value)
        assert shlex.split(quoted) == [value]


@pytest.mark.unit
class TestCommandLine:
    """Tests for the token-list builder."""

    def test_option_skips_none_and_empty(self):
        cmd = CommandLine("railway", "variables").option("--service", None).option("--env", "")
        assert cmd.render() == "railway variables"

    def test_flag_enabled(self):
        cmd = CommandLine("railway", "up").flag("--ci").flag("--detach", False)
        assert cmd.tokens == ["railway", "up", "--ci"]

    def test_values_quoted_once(self):
        cmd = CommandLine("railway", "variables").option("--service", "my api").flag("--kv")
        assert str(cmd) == "railway variables --service 'my api' --kv"

    def test_binary_with_spaces_quoted(self):
        assert CommandLine("/opt/my tools/railway", "whoami").render() == (
            "'/opt/my tools/railway' whoami"
        )


@pytest.mark.unit
class TestBuildLogCommand:
    """Tests for `railway logs` construction."""

    def test_deployment_logs_default_lines(self):
        command = build_log_command(LogOptions(log_type="deployment"), MODERN)
        assert command == "railway logs --deployment --lines 500"

    def test_build_logs_default_lines(self):
        command = build_log_command(LogOptions(log_type="build"), MODERN)
        assert command == "railway logs --build --lines 500"

    def test_json_defaults_to_fewer_lines(self):
        command = build_log_command(LogOptions(json=True), MODERN)
        assert command == "railway logs --deployment --json --lines 100"

    def test_explicit_lines(self):
        command = build_log_command(LogOptions(lines=25), MODERN)
        assert command == "railway logs --deployment --lines 25"

    def test_filter_always_quoted(self):
        command = build_log_command(LogOptions(lines=10, filter="@level:error"), MODERN)
        assert command == "railway logs --deployment --lines 10 --filter '@level:error'"

    def test_empty_filter_omitted(self):
        command = build_log_command(LogOptions(filter=""), MODERN)
        assert "--filter" not in command

    def test_legacy_cli_drops_lines_and_filter(self):
        command = build_log_command(LogOptions(lines=50, filter="error"), LEGACY)
        assert command == "railway logs --deployment"

    def test_unknown_version_drops_lines_and_filter(self):
        command = build_log_command(LogOptions(lines=50, filter="error", json=True), UNKNOWN)
        assert command == "railway logs --deployment --json"

    def test_full_token_order(self):
        options = LogOptions(
            log_type="build",
            deployment_id="dep-1",
            service="api",
            environment="production",
            lines=20,
            filter="timeout",
            since="1h",
            until="10m",
            json=True,
        )
        command = build_log_command(options, MODERN)
        assert command == (
            "railway logs --build --json --lines 20 --filter 'timeout' dep-1 "
            "--service api --environment production --since 1h --until 10m"
        )

    def test_hostile_values_stay_single_arguments(self):
        options = LogOptions(
            service="api; echo pwned",
            filter="a' && touch /tmp/x '",
        )
        tokens = shlex.split(build_log_command(options, MODERN))
        assert "api; echo pwned" in tokens
        assert "a' && touch /tmp/x '" in tokens

    def test_custom_binary(self):
        command = build_log_command(LogOptions(), FeatureSupport(), binary="/usr/local/bin/railway")
        assert command == "/usr/local/bin/railway logs --deployment"


@pytest.mark.unit
class TestBuildDeploymentListCommand:
    """Tests for `railway deployment list` construction."""

    def test_defaults(self):
        command = build_deployment_list_command(DeploymentListOptions())
        assert command == "railway deployment list --limit 20"

    def test_all_options(self):
        options = DeploymentListOptions(service="api", environment="staging", limit=5, json=True)
        command = build_deployment_list_command(options)
        assert command == (
            "railway deployment list --service api --environment staging --limit 5 --json"
        )


@pytest.mark.unit
class TestManagementCommands:
    """Tests for project, service, environment, variable, and deploy commands."""

    def test_up(self):
        assert build_up_command() == "railway up"
        assert build_up_command(environment="prod", service="api", ci=True) == (
            "railway up --ci --environment prod --service api"
        )

    def test_domain(self):
        assert build_domain_command() == "railway domain --json"
        assert build_domain_command(service="web") == "railway domain --json --service web"

    def test_init_and_link(self):
        assert build_init_command("my app") == "railway init --name 'my app'"
        assert build_link_project_command("my app") == "railway link -p 'my app'"

    def test_link_service(self):
        assert build_link_service_command("api") == "railway service api"

    def test_link_environment(self):
        assert build_link_environment_command("staging") == "railway environment staging"
        assert build_link_environment_command() == "railway environment"

    def test_create_environment(self):
        command = build_create_environment_command(
            "preview",
            duplicate_environment="production",
            service_variables=[ServiceVariable("api", "PORT=3000")],
        )
        assert command == (
            "railway environment new preview --duplicate production "
            "--service-variable api PORT=3000"
        )

    def test_list_variables(self):
        assert build_list_variables_command(service="api", kv=True, json=True) == (
            "railway variables --service api --kv --json"
        )

    def test_set_variables_quotes_every_assignment(self):
        command = build_set_variables_command(
            ["PORT=3000", "GREETING=hello world"],
            service="api",
            skip_deploys=True,
        )
        assert command == (
            "railway variables --service api --skip-deploys "
            "--set 'PORT=3000' --set 'GREETING=hello world'"
        )
