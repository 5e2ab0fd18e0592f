# ABOUTME: Structured logging with correlation IDs for Railway MCP Server
# ABOUTME: Implements audit logging of tool invocations and stderr-only log output

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the observability features of the server:

1. STRUCTURED LOGGING: Logs as key/value events (JSON or console text) with
   consistent fields such as command, workspace and exit code.

2. CORRELATION IDs: A short identifier attached to every log entry produced
   while handling one tool call. A single tool call usually runs several
   Railway CLI commands (--version, whoami, status --json, then the real
   command), so the ID is what ties them together.

3. AUDIT LOGGING: One record per tool invocation stating what was attempted
   and whether it succeeded.

=============================================================================
WHY STDERR?
=============================================================================

The MCP stdio transport uses STDOUT for protocol messages. A single stray log
line on stdout corrupts the JSON-RPC stream and the client disconnects. All
log output therefore goes to STDERR.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

# Each async task sees its own value; tool calls never leak IDs into each other.
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Code running outside a tool call (startup, the version check at lifespan)
    still gets an ID, so logs are always correlatable.

    Returns:
        8-character correlation ID string.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    Called at the start of each MCP tool with the request ID from the MCP
    context. An empty string makes the next get_correlation_id() generate one.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor adding the correlation ID to every event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    Call once at startup; calling again reconfigures (the lifespan does this
    after settings are loaded).

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Adds values bound with bind_contextvars()
    2. add_log_level: Adds "level"
    3. TimeStamper: Adds ISO-format timestamp
    4. add_correlation_id: Adds the tool call's correlation ID
    5. Renderer: JSON lines or plain console text

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        json_output: JSON lines for log aggregators, console text otherwise.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        # colors=False: stderr is usually captured by the MCP client, not a TTY
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        # stdout belongs to the MCP stdio transport
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit logger for recording tool invocations.

    Every tool call records:
    - timestamp: When it happened (UTC ISO 8601)
    - correlation_id: Request identifier
    - action: Tool name ("deploy", "set_variables")
    - target: Workspace path, service or project the call was about
    - result: "success", "error", or a write outcome ("deployed", "set")
    - details: Optional context (error message, options used)

    Entries go either to a JSON-lines file or through structlog.

    EXAMPLE AUDIT LOG ENTRY:
    ------------------------
    {"timestamp": "2025-01-15T10:30:00+00:00", "correlation_id": "abc12345",
     "action": "set_variables", "target": "/work/api", "result": "set",
     "details": {"keys": ["PORT", "DATABASE_URL"], "service": "api"}}
    """

    def __init__(self, log_path: Path | None = None) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file (appended, never truncated), or
                      None to log through structlog.
        """
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log an auditable action.

        Args:
            action: Tool or operation name.
            target: What the action applied to.
            result: "success", "error", or a write outcome.
            details: Additional context.
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }

        if details:
            entry["details"] = details

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_read(self, action: str, target: str) -> None:
        """Log a successful read-only tool call."""
        self.log(action, target, "success")

    def log_write(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log a state-changing tool call.

        Example:
            audit_logger.log_write("deploy", "/work/api", "deployed", {"ci": True})
        """
        self.log(action, target, result, details)

    def log_error(
        self,
        action: str,
        target: str,
        error: str,
    ) -> None:
        """
        Log a failed tool call.

        Example:
            audit_logger.log_error(
                "get_logs",
                "/work/api",
                "No Railway project is linked. Run 'railway link' to connect to a project",
            )
        """
        self.log(action, target, "error", {"error": error})
