# ABOUTME: Utilities package initialization for Railway MCP Server
# ABOUTME: Contains the CLI runner, command builders, error classifier, and logging

"""
Railway MCP Utilities Package

Shared utilities:
    - cli.py: Railway CLI runner and operations
    - commands.py: Command line construction with shell quoting
    - version.py: CLI version cache and feature gating
    - errors.py: Error classification with remediation messages
    - api.py: Railway GraphQL client for templates
    - logging.py: Structured logging with correlation IDs
"""
