"""Typed exception hierarchy for agent-side errors.

These cover failures detected before any remote call (bad command
arguments, bad /auth payloads, missing credentials) plus configuration and
credential-store problems. All inherit from AgentError.
"""

from typing import Optional

from src.confluence_client.errors import KBAgentError


class AgentError(KBAgentError):
    """Base exception for all agent-side errors."""
    pass


class UsageError(AgentError):
    """Raised when command arguments are malformed (wrong arity, missing text)."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class AuthPayloadError(AgentError):
    """Raised when the /auth JSON cannot be parsed or lacks a required key."""

    def __init__(self, message: str, missing_fields: Optional[list] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class AuthenticationRequiredError(AgentError):
    """Raised when an authenticated command runs without a stored credential."""

    def __init__(self, command: str):
        super().__init__(f"Command '/{command}' requires authentication")
        self.command = command


class NoChatModelAvailableError(AgentError):
    """Raised by model selection when no chat model is configured."""

    def __init__(self, reason: str = "No chat model configured"):
        super().__init__(reason)


class ConfigError(AgentError):
    """Raised when the configuration file is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            full_message = f"Config error in field '{field}': {message}"
        else:
            full_message = f"Config error: {message}"
        super().__init__(full_message)
        self.field = field
        self.original_message = message


class CredentialStoreError(AgentError):
    """Raised when the credential file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Credential store operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
