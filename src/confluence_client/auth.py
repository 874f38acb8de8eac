"""Credentials and Basic authentication for the Confluence REST API.

Credentials are an immutable triple (url, email, token). They are only ever
built through Credentials.build(), which rejects partial values, so a
half-filled credential cannot reach the session or the credential store.
"""

import base64
import os
from typing import Any, NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


class Credentials(NamedTuple):
    """Confluence API credentials."""
    url: str
    email: str
    token: str

    @classmethod
    def build(cls, url: Any, email: Any, token: Any) -> "Credentials":
        """Build credentials from raw values.

        Values are coerced to strings and the url loses any trailing slash.

        Raises:
            ValueError: If any field is empty after coercion
        """
        url_str = str(url).rstrip('/') if url is not None else ''
        email_str = str(email) if email is not None else ''
        token_str = str(token) if token is not None else ''

        missing = [
            name for name, value in (
                ('url', url_str), ('email', email_str), ('token', token_str)
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing credential field(s): {', '.join(missing)}")

        return cls(url=url_str, email=email_str, token=token_str)

    def as_dict(self) -> dict:
        return {'token': self.token, 'url': self.url, 'email': self.email}


def basic_auth_header(credentials: Credentials) -> str:
    """Return the Authorization header value for the given credentials."""
    raw = f"{credentials.email}:{credentials.token}".encode('utf-8')
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


class Authenticator:
    """Loads candidate Confluence credentials from environment variables.

    Used by `kb-agent login --from-env`. The credentials returned here are
    unverified; they go through the /auth probe before being stored.

    Required environment variables:
        CONFLUENCE_URL: Confluence site URL (e.g., https://yourinstance.atlassian.net)
        CONFLUENCE_USER: Confluence user email address
        CONFLUENCE_API_TOKEN: Confluence API token

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get Confluence credentials from environment variables.

        Returns:
            Credentials: A named tuple containing url, email, and token

        Raises:
            InvalidCredentialsError: If any required variable is missing
        """
        url = os.getenv('CONFLUENCE_URL')
        user = os.getenv('CONFLUENCE_USER')
        api_token = os.getenv('CONFLUENCE_API_TOKEN')

        if not url or not user or not api_token:
            raise InvalidCredentialsError(
                user=user if user else "unknown",
                endpoint=url if url else "unknown"
            )

        return Credentials.build(url=url, email=user, token=api_token)
