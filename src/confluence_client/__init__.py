"""Confluence client library for the KB agent.

This package provides a small Python client over the Confluence Cloud REST
API: credentials and Basic auth, request building, and a typed error
hierarchy for remote failures.
"""

from .auth import Credentials
from .errors import (
    KBAgentError,
    ConfluenceError,
    NotAuthenticatedError,
    InvalidCredentialsError,
    RemoteCallError,
    HTTPStatusError,
    APIUnreachableError,
    MalformedResponseError,
)

__all__ = [
    "Credentials",
    "KBAgentError",
    "ConfluenceError",
    "NotAuthenticatedError",
    "InvalidCredentialsError",
    "RemoteCallError",
    "HTTPStatusError",
    "APIUnreachableError",
    "MalformedResponseError",
]
