"""Durable storage for the single active credential.

The file store keeps one record under the fixed key `kbAgentAuth` in a YAML
document:

    kbAgentAuth:
      token: "..."
      url: "https://example.atlassian.net"
      email: "user@example.com"

A missing, empty or partial record loads as "no credential". Writes go to a
temporary file that is renamed over the target, so readers never see a
half-written record.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

import yaml

from src.confluence_client.auth import Credentials
from .errors import CredentialStoreError

logger = logging.getLogger(__name__)

AUTH_KEY = 'kbAgentAuth'


class CredentialStore(ABC):
    """Host storage for at most one credential set."""

    @abstractmethod
    def load(self) -> Optional[Credentials]:
        """Return the stored credential, or None."""

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        """Replace the stored credential."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored credential."""


class MemoryCredentialStore(CredentialStore):
    """Process-local store; nothing survives a restart."""

    def __init__(self, credentials: Optional[Credentials] = None):
        self._credentials = credentials

    def load(self) -> Optional[Credentials]:
        return self._credentials

    def save(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def clear(self) -> None:
        self._credentials = None


class FileCredentialStore(CredentialStore):
    """YAML file store, readable and writable by the owner only.

    Example:
        >>> store = FileCredentialStore("~/.kb-agent/credentials.yaml")
        >>> store.save(Credentials.build("https://x.atlassian.net", "me@x.com", "t"))
        >>> store.load().url
        'https://x.atlassian.net'
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def load(self) -> Optional[Credentials]:
        """Load the credential record.

        Raises:
            CredentialStoreError: If the file exists but cannot be read
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStoreError(self.path, 'read', str(e))

        if not content.strip():
            return None

        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return None

        record = document.get(AUTH_KEY) if isinstance(document, dict) else None
        if not isinstance(record, dict):
            return None

        try:
            return Credentials.build(
                url=record.get('url'),
                email=record.get('email'),
                token=record.get('token'),
            )
        except ValueError as e:
            logger.warning(f"Ignoring partial credential record in {self.path}: {e}")
            return None

    def save(self, credentials: Credentials) -> None:
        """Write the credential record atomically.

        Raises:
            CredentialStoreError: If the directory or file cannot be written
        """
        yaml_str = yaml.safe_dump(
            {AUTH_KEY: credentials.as_dict()},
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        directory = os.path.dirname(self.path) or '.'
        try:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        except OSError as e:
            raise CredentialStoreError(directory, 'create_directory', str(e))

        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.credentials-')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(yaml_str)
                os.chmod(temp_path, 0o600)
                os.replace(temp_path, self.path)
            except BaseException:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except OSError as e:
            raise CredentialStoreError(self.path, 'write', str(e))

        logger.debug(f"Saved credential for {credentials.url} to {self.path}")

    def clear(self) -> None:
        """Delete the credential file if present.

        Raises:
            CredentialStoreError: If the file exists but cannot be removed
        """
        try:
            os.remove(self.path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise CredentialStoreError(self.path, 'delete', str(e))
