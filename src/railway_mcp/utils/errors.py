# ABOUTME: Railway CLI error classification and exception types
# ABOUTME: Maps raw CLI output to a closed set of error kinds with remediation messages

"""
Error classification for Railway CLI failures.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

When a `railway` command fails, its output is written for humans at a
terminal: "Unauthorized. Please login with `railway login`", "Project has no
services.", and so on. An agent needs one short, actionable sentence instead.

This module is the single place where raw CLI text becomes a known error kind:

    raw stdout + stderr
        -> ordered pattern table (first match wins)
        -> ErrorKind
        -> fixed remediation message
        -> RailwayCliError raised to the tool handler

=============================================================================
KNOWN LIMITATION
=============================================================================

The patterns copy the CLI's exact wording. If a CLI release rephrases a
message, that failure falls through to the generic COMMAND_FAILED kind.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NoReturn

import structlog

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    """Closed set of Railway CLI failure categories."""

    UNAUTHORIZED = "unauthorized"
    INVALID_TOKEN = "invalid_token"
    NO_LINKED_PROJECT = "no_linked_project"
    PROJECT_NOT_FOUND = "project_not_found"
    PROJECT_DELETED = "project_deleted"
    ENVIRONMENT_DELETED = "environment_deleted"
    SERVICE_NOT_FOUND = "service_not_found"
    NO_SERVICES = "no_services"
    NO_SERVICE_LINKED = "no_service_linked"
    NO_PROJECTS = "no_projects"
    TOOL_NOT_INSTALLED = "tool_not_installed"
    COMMAND_FAILED = "command_failed"


# =============================================================================
# PATTERN TABLE
# =============================================================================

# Evaluated top to bottom; the first match wins.
# UNAUTHORIZED must stay above INVALID_TOKEN: its text also contains the bare
# word "Unauthorized", which INVALID_TOKEN would otherwise claim.
ERROR_PATTERNS: tuple[tuple[ErrorKind, re.Pattern[str]], ...] = (
    (ErrorKind.UNAUTHORIZED, re.compile(r"Unauthorized\. Please login with `railway login`")),
    (ErrorKind.INVALID_TOKEN, re.compile(r"Unauthorized")),
    (
        ErrorKind.NO_LINKED_PROJECT,
        re.compile(r"No linked project found\. Run railway link to connect to a project"),
    ),
    (
        ErrorKind.PROJECT_NOT_FOUND,
        re.compile(r"Project not found\. Run `railway link` to connect to a project\."),
    ),
    (
        ErrorKind.PROJECT_DELETED,
        re.compile(r"Project is deleted\. Run `railway link` to connect to a project\."),
    ),
    (
        ErrorKind.ENVIRONMENT_DELETED,
        re.compile(
            r"Environment is deleted\. Run `railway environment` to connect to an environment\."
        ),
    ),
    (ErrorKind.SERVICE_NOT_FOUND, re.compile(r'Service "[^"]+" not found\.')),
    (ErrorKind.NO_SERVICES, re.compile(r"Project has no services\.")),
    (
        ErrorKind.NO_SERVICE_LINKED,
        re.compile(r"No service linked\nRun `railway service` to link a service"),
    ),
    (
        ErrorKind.NO_PROJECTS,
        re.compile(r"No projects found\. Run `railway init` to create a new project"),
    ),
)

ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHORIZED: "Not logged in to Railway CLI. Please run 'railway login' first",
    ErrorKind.INVALID_TOKEN: (
        "Invalid or expired Railway token. "
        "Please run 'railway login' to refresh your authentication"
    ),
    ErrorKind.NO_LINKED_PROJECT: (
        "No Railway project is linked. Run 'railway link' to connect to a project"
    ),
    ErrorKind.PROJECT_NOT_FOUND: "Project not found. Run 'railway link' to connect to a project",
    ErrorKind.PROJECT_DELETED: (
        "Project has been deleted. Run 'railway link' to connect to a different project"
    ),
    ErrorKind.ENVIRONMENT_DELETED: (
        "Environment has been deleted. "
        "Run 'railway environment' to connect to an environment"
    ),
    ErrorKind.SERVICE_NOT_FOUND: (
        "Service not found. Run 'railway service <service-name>' to link a service"
    ),
    ErrorKind.NO_SERVICES: "Project has no services. Create a service first",
    ErrorKind.NO_SERVICE_LINKED: (
        "No service linked. Run 'railway service <service-name>' to link a service"
    ),
    ErrorKind.NO_PROJECTS: "No projects found. Run 'railway init' to create a new project",
    ErrorKind.TOOL_NOT_INSTALLED: (
        "Railway CLI is not installed. "
        "Please install it first: https://docs.railway.com/guides/cli"
    ),
}


# =============================================================================
# EXCEPTIONS
# =============================================================================


class RailwayCommandError(Exception):
    """
    Raw failure of one Railway CLI subprocess.

    Raised by the subprocess runner only; operations hand it to
    classify_and_raise() rather than showing it to the agent.

    Attributes:
        command: The command line that was run
        exit_code: Process exit status, None if the process never started
        stdout: Captured standard output
        stderr: Captured standard error
        code: Symbolic error code ("ENOENT" when the CLI binary is missing)
        message: Short human-readable description, if any
    """

    def __init__(
        self,
        command: str,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
        code: str | None = None,
        message: str | None = None,
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.code = code
        self.message = message
        super().__init__(str(self))

    @property
    def output(self) -> str:
        """Combined output in the order the classifier expects: stdout then stderr."""
        return self.stdout + self.stderr

    def __str__(self) -> str:
        if self.message:
            return self.message
        return f"Command '{self.command}' exited with status {self.exit_code}"


class RailwayCliError(Exception):
    """
    Classified Railway CLI failure.

    The message is the remediation text shown to the agent; kind lets callers
    branch without matching on message text.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# CLASSIFICATION
# =============================================================================


def classify_output(output: str) -> ErrorKind | None:
    """Return the first pattern kind matching the output, or None."""
    for kind, pattern in ERROR_PATTERNS:
        if pattern.search(output):
            return kind
    return None


def _error_parts(error: BaseException) -> tuple[str, str | None, str | None]:
    """Pull (output, code, message) from a runner error or any other exception."""
    if isinstance(error, RailwayCommandError):
        return error.output, error.code, error.message
    if isinstance(error, RailwayCliError):
        return "", None, error.message
    message = str(error) or None
    return "", getattr(error, "code", None), message


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify a failed operation.

    Order of precedence:
    1. Output pattern table
    2. Missing executable (code "ENOENT")
    3. Generic command failure
    """
    output, code, _ = _error_parts(error)
    kind = classify_output(output)
    if kind is not None:
        return kind
    if code == "ENOENT":
        return ErrorKind.TOOL_NOT_INSTALLED
    return ErrorKind.COMMAND_FAILED


def classify_and_raise(error: BaseException, command: str) -> NoReturn:
    """
    Translate any failure of a CLI operation into a RailwayCliError.

    Always raises; the return type documents that callers never continue.

    Args:
        error: Runner failure or any exception raised while handling output.
        command: Command attempted, used in the generic fallback message.

    Raises:
        RailwayCliError: With the remediation message for the detected kind.
    """
    if isinstance(error, RailwayCliError):
        raise error

    kind = classify_error(error)
    _, _, message = _error_parts(error)

    if kind in ERROR_MESSAGES:
        text = ERROR_MESSAGES[kind]
    elif message:
        text = f"Railway CLI error: {message}"
    else:
        text = f"Railway CLI command '{command}' failed with unknown error"

    logger.info("Railway CLI failure classified", kind=kind.value, command=command)
    raise RailwayCliError(kind, text) from error
