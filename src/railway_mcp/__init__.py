# ABOUTME: Railway MCP Server package initialization
# ABOUTME: Exposes version information for the Railway MCP server package

"""
Railway MCP Server - Railway CLI operations via Model Context Protocol.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

An MCP server that lets a coding agent manage Railway projects from its
workspace. Most tools shell out to the locally installed `railway` CLI, so
the agent works with the same login and linked project as the developer.
Template search and deployment, which the CLI does not offer, use Railway's
public GraphQL API with the CLI's stored token.

The installed CLI version decides which flags are safe to send: log line
limits and filters need 4.9.0, `deployment list` needs 4.10.0.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

railway_mcp/
├── __init__.py          <- Package entry point
├── config.py            <- Configuration management (env vars, settings)
├── server.py            <- MCP server with all tools and resources
└── utils/
    ├── __init__.py      <- Utils subpackage marker
    ├── api.py           <- GraphQL client for templates
    ├── cli.py           <- Railway CLI runner and operations
    ├── commands.py      <- Shell-quoted command line builders
    ├── errors.py        <- CLI failure classification
    ├── logging.py       <- Structured logging with audit trails
    └── version.py       <- CLI version cache and feature gates
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
