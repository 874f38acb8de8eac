"""Typed exception hierarchy for Confluence-related errors.

This module defines the exceptions raised by the Confluence client library.
All of them inherit from ConfluenceError so a command handler can catch any
remote failure in one place and turn it into a user-facing message.
"""

from typing import Optional


class KBAgentError(Exception):
    """Base exception for all kb-agent errors.

    Use this to catch any application-level error from the agent.
    """
    pass


class ConfluenceError(KBAgentError):
    """Base exception for all Confluence-related errors."""
    pass


class NotAuthenticatedError(ConfluenceError):
    """Raised when a request is attempted without an active credential."""

    def __init__(self):
        super().__init__("Not authenticated. Please run /auth first.")


class InvalidCredentialsError(ConfluenceError):
    """Raised when credentials are incomplete (e.g. missing environment variables)."""

    def __init__(self, user: str, endpoint: str):
        super().__init__(
            f"Credentials are incomplete (user: {user}, endpoint: {endpoint})"
        )
        self.user = user
        self.endpoint = endpoint


class RemoteCallError(ConfluenceError):
    """Base exception for a failed call to the Confluence REST API."""
    pass


class HTTPStatusError(RemoteCallError):
    """Raised when the API answers with a non-success HTTP status."""

    def __init__(self, status_code: int, reason: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {reason or ''}".rstrip())
        self.status_code = status_code
        self.reason = reason


class APIUnreachableError(RemoteCallError):
    """Raised when the Confluence API cannot be reached (DNS, refused, timeout)."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"API is not available at {endpoint}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class MalformedResponseError(RemoteCallError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, message: str):
        super().__init__(f"Malformed response: {message}")
